from fastapi import APIRouter

from legalflow.api.routes import billing, cases, clients, documents, health, invoices, profile

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(billing.router, tags=["billing"])
api_router.include_router(profile.router, prefix="/profile", tags=["profile"])
api_router.include_router(clients.router, prefix="/clients", tags=["clients"])
api_router.include_router(cases.router, prefix="/cases", tags=["cases"])
api_router.include_router(documents.router, prefix="/documents", tags=["documents"])
api_router.include_router(invoices.router, prefix="/invoices", tags=["invoices"])
