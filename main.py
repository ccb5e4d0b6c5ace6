import logging
import os

import uvicorn
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from logtracer import log_tracer
from logtracer.config import TelemetrySettings, setup_logging, setup_telemetry

logger = logging.getLogger(__name__)

app = FastAPI(title="Order demo", version="1.0")


class OrderRequest(BaseModel):
    items: list[str]
    customer: str = "anonymous"


class EmptyOrderError(ValueError):
    pass


@log_tracer("validateOrder")
def validate_order(items: list[str]):
    if not items:
        raise EmptyOrderError("order has no items")
    return items


@log_tracer("priceItems", log_input=False, log_output=True)
def price_items(items: list[str]) -> int:
    return sum(len(item) for item in items) * 7


@log_tracer("processOrder", log_input=True, log_output=True)
def process_order(items: list[str], customer: str = "anonymous") -> dict:
    validate_order(items)
    total = price_items(items)
    return {"customer": customer, "items": items, "total": total}


@app.post("/orders")
def create_order(order: OrderRequest):
    """
    Endpoint to place an order; every step shows up as a span.
    """
    try:
        return process_order(order.items, customer=order.customer)
    except EmptyOrderError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.get("/")
def root():
    return {"status": "running"}


@app.on_event("startup")
async def startup_event():
    """
    Configure logging and tracing from LOGTRACER_* settings.
    """
    setup_logging(os.getenv("LOG_LEVEL", "INFO"))
    setup_telemetry(TelemetrySettings.from_env())
    logger.info("Order demo ready")


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", 8000)))
