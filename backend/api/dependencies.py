"""Shared dependencies for API routes."""

from fastapi import Request

from services.reranker import RerankService


def get_reranker(request: Request) -> RerankService:
    return request.app.state.reranker
