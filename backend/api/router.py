from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.dependencies import get_reranker
from models.requests import RerankRequest
from models.responses import Counters, ErrorResponse, HealthResponse, RerankResponse
from services.errors import EmbeddingError, RerankError
from services.reranker import RerankService

router = APIRouter()

_ERROR_STATUS = {
    EmbeddingError.code: 502,
    "timeout": 504,
    RerankError.code: 500,
}


@router.get("/health", response_model=HealthResponse)
async def health(reranker: RerankService = Depends(get_reranker)):
    return HealthResponse(
        status="ok",
        embed_provider=reranker.embedder.provider_name,
        cache_entries=len(reranker.cache),
    )


@router.post(
    "/rerank",
    response_model=RerankResponse,
    responses={code: {"model": ErrorResponse} for code in set(_ERROR_STATUS.values())},
)
async def rerank(body: RerankRequest, reranker: RerankService = Depends(get_reranker)):
    outcome = await reranker.rerank(body)
    if isinstance(outcome, ErrorResponse):
        return JSONResponse(
            status_code=_ERROR_STATUS.get(outcome.error, 500),
            content=outcome.model_dump(by_alias=True),
        )
    return outcome


@router.get("/metrics", response_model=Counters)
async def metrics(reranker: RerankService = Depends(get_reranker)):
    return reranker.metrics()
