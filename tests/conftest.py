"""Shared fixtures: a stand-in authorization server and HTTP helpers."""

from typing import Dict, List, Union

import httpx
import pytest
from fastapi import FastAPI, Header
from fastapi.responses import JSONResponse
from fastapi.testclient import TestClient
from pydantic import BaseModel

from models import Identity

AUTHORITY_BASE = "http://testserver/v1"
API_KEY = "test-installer-key"
LICENSE_KEY = "LIC-0001-ABCD-EFGH"


class AuthCheckBody(BaseModel):
    license_key: str
    public_ip: str
    machine_id: str = ""


def create_authority(licenses: Dict[str, List[str]], api_key: str = API_KEY) -> FastAPI:
    """Minimal authority: each license maps to the exact IPs it may run from."""
    app = FastAPI()
    app.state.received = []

    @app.post("/v1/auth/check")
    def check(body: AuthCheckBody, x_api_key: str = Header(default="")):
        app.state.received.append(body)

        if x_api_key != api_key:
            return JSONResponse(status_code=401, content={"allowed": False, "message": "Invalid API key"})
        if body.license_key not in licenses:
            return JSONResponse(status_code=403, content={"allowed": False, "message": "License not found"})
        if body.public_ip not in licenses[body.license_key]:
            return JSONResponse(
                status_code=403,
                content={"allowed": False, "message": "IP address not authorized for this license"},
            )
        return {"allowed": True, "message": "OK"}

    return app


@pytest.fixture
def authority():
    return create_authority({LICENSE_KEY: ["203.0.113.7"]})


@pytest.fixture
def authority_client(authority):
    with TestClient(authority) as client:
        yield client


@pytest.fixture
def identity():
    return Identity(public_ip="203.0.113.7", machine_id="4c4c4544003457108052b4c04f4e4d32")


Reply = Union[httpx.Response, Exception]


def mock_http_client(replies: Dict[str, Reply], calls: List[str]) -> httpx.Client:
    """httpx client answering by host; records every host contacted."""

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.host)
        reply = replies[request.url.host]
        if isinstance(reply, Exception):
            raise reply
        return reply

    return httpx.Client(transport=httpx.MockTransport(handler))
