from pydantic import BaseModel

class RegisterRequest(BaseModel):
    email: str
    password: str
    displayName: str = ""

class LoginRequest(BaseModel):
    email: str
    password: str

class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
