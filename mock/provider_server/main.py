from fastapi import FastAPI, HTTPException
from pydantic import BaseModel
import os
import random

app = FastAPI(title="Mock Cable Provider", version="1.0.0")
SUCCESS_RATE = float(os.getenv("MOCK_PROVIDER_SUCCESS_RATE", "0.9"))
# Smart cards starting with this prefix are always refused
BLOCKED_PREFIX = os.getenv("MOCK_PROVIDER_BLOCKED_PREFIX", "0000")


class Subscription(BaseModel):
    provider: str
    package_id: str
    package_name: str
    amount: str
    smart_card_number: str
    reference: str


@app.get("/health")
def health(): return {"status": "ok"}

@app.post("/cable/subscriptions")
def subscribe(body: Subscription):
    if not body.smart_card_number.isdigit():
        raise HTTPException(status_code=422, detail="invalid smart card number")
    if body.smart_card_number.startswith(BLOCKED_PREFIX) or random.random() >= SUCCESS_RATE:
        return {"status": "failed", "reference": body.reference}
    return {"status": "success", "reference": body.reference}
