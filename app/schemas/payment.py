from pydantic import BaseModel, Field


class CreateOrderRequest(BaseModel):
    appointment_id: str


class PaymentOrderOut(BaseModel):
    order_id: str
    appointment_id: str
    amount: int = Field(description="Amount in minor currency units (paise)")
    currency: str
    key_id: str


class VerifyPaymentRequest(BaseModel):
    appointment_id: str
    razorpay_order_id: str = Field(min_length=1)
    razorpay_payment_id: str = Field(min_length=1)
    razorpay_signature: str = Field(min_length=1)
