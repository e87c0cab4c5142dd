from pydantic import BaseModel


class VerifyPaymentIn(BaseModel):
    session_id: str = ""


class VerifyPaymentOut(BaseModel):
    status: str
    booking_confirmed: bool
    bookingReference: str | None = None
