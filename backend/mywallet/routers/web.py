from typing import Any

from fastapi import APIRouter, Body, Request
from fastapi.responses import Response

from mywallet.db.store import DocumentStore
from mywallet.models.schemas import HomeResponse, TokenResponse, UserOut
from mywallet.services.auth import login_user, public_user, register_user, require_bearer_user
from mywallet.services.ledger import build_history, create_transaction

router = APIRouter()


def get_store(req: Request) -> DocumentStore:
    return req.app.state.store


@router.get("/health")
def health():
    return {"ok": True}


@router.post("/cadastro", status_code=201)
def register(req: Request, data: Any = Body(default=None)):
    register_user(get_store(req), data)
    return Response(status_code=201)


@router.post("/", response_model=TokenResponse)
def login(req: Request, data: Any = Body(default=None)):
    token = login_user(get_store(req), data)
    return {"token": token}


@router.get("/", response_model=UserOut)
def me(req: Request):
    user = require_bearer_user(req, get_store(req))
    return public_user(user)


@router.post("/nova-transacao/{tipo}", status_code=201)
def new_transaction(tipo: str, req: Request, data: Any = Body(default=None)):
    store = get_store(req)
    user = require_bearer_user(req, store)
    create_transaction(store, user, tipo, data)
    return Response(status_code=201)


@router.get("/home", response_model=HomeResponse)
def home(req: Request):
    store = get_store(req)
    user = require_bearer_user(req, store)
    return build_history(store, user)
