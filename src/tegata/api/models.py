"""Pydantic request/response models for the Tegata API."""

from pydantic import BaseModel


class SignRequest(BaseModel):
    name: str
    value: str


class SignResponse(BaseModel):
    name: str
    token: str


class ReadRequest(BaseModel):
    name: str
    token: str


class CookieValueResponse(BaseModel):
    name: str
    value: str


class SetCookieRequest(BaseModel):
    value: str
