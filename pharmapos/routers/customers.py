# pharmapos/routers/customers.py

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from pharmapos.core.exceptions import ConflictError, NotFoundError
from pharmapos.database import get_db
from pharmapos.models.customers import Customer
from pharmapos.schemas.common import ApiResponse
from pharmapos.schemas.customer import CustomerCreate, CustomerResponse

router = APIRouter(
    prefix="/api/customers",
    tags=["Customers"],
)


@router.post(
    "",
    response_model=ApiResponse[CustomerResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_customer(
    customer_data: CustomerCreate,
    db: Session = Depends(get_db),
):
    # One customer per phone number
    existing = db.query(Customer).filter(Customer.phone == customer_data.phone).first()
    if existing:
        raise ConflictError(
            "Customer with this phone already exists",
            payload={"customer_id": existing.id},
        )

    customer = Customer(**customer_data.model_dump())

    db.add(customer)
    db.commit()
    db.refresh(customer)

    return ApiResponse(data=CustomerResponse.model_validate(customer), message="Customer created successfully")


@router.get("", response_model=ApiResponse[list[CustomerResponse]])
def list_customers(db: Session = Depends(get_db)):
    customers = db.query(Customer).order_by(Customer.name).all()
    return ApiResponse(data=[CustomerResponse.model_validate(c) for c in customers])


@router.get("/{customer_id}", response_model=ApiResponse[CustomerResponse])
def get_customer(customer_id: str, db: Session = Depends(get_db)):
    customer = db.query(Customer).filter(Customer.id == customer_id).first()

    if not customer:
        raise NotFoundError(f"Customer {customer_id} not found")

    return ApiResponse(data=CustomerResponse.model_validate(customer))
