"""Liveness routes."""
from fastapi import APIRouter
from fastapi.responses import PlainTextResponse


router = APIRouter(tags=["Health"])

LIVENESS_MESSAGE = "✅ Backend is working 🚀"


async def liveness() -> PlainTextResponse:
    return PlainTextResponse(LIVENESS_MESSAGE)


@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok", "message": "Backend is healthy"}
