"""Routers module."""

from .cedentes import router as cedentes_router
from .comissoes import router as comissoes_router
from .compras import router as compras_router
from .vendas import router as vendas_router

__all__ = ["cedentes_router", "comissoes_router", "compras_router", "vendas_router"]
