"""
Aplicação principal FastAPI para topologia de armazenamento e alocação de caixas
"""
import logging
import os
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from logging_setup import setup_logging
from models.database import Base, engine
from routers import rooms_router, racks_router, boxes_router, items_router, safety_router
from services.errors import StorageError

setup_logging()
logger = logging.getLogger(__name__)

# Criar diretório storage se não existir
os.makedirs("storage", exist_ok=True)

# Criar app FastAPI
app = FastAPI(
    title="Inventário Doméstico - Estantes e Caixas",
    description="Topologia de estantes, posições e alocação de caixas"
)

app.include_router(rooms_router)
app.include_router(racks_router)
app.include_router(boxes_router)
app.include_router(items_router)
app.include_router(safety_router)


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    """Converte erros de domínio em {"error", "code", "details"}"""
    level = logging.ERROR if exc.status_code >= 500 else logging.INFO
    logger.log(
        level,
        "request rejected",
        extra={"path": request.url.path, "method": request.method, "code": exc.code}
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.on_event("startup")
async def startup_event():
    """Inicializar banco de dados na startup"""
    Base.metadata.create_all(bind=engine)
    logger.info("database ready")


@app.get("/health")
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
