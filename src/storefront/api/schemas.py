# request records for each operation; field names follow the wire format
from pydantic import BaseModel, ConfigDict


class Request(BaseModel):
    model_config = ConfigDict(extra="ignore")


class RegisterRequest(Request):
    name: str
    email: str
    password: str


class LoginRequest(Request):
    email: str
    password: str


class UserRequest(Request):
    userId: str


class CartItemRequest(UserRequest):
    productId: str


class PlaceOrderRequest(UserRequest):
    address: str
