from fastapi import APIRouter

from app.billing import get_country_rules

router = APIRouter()

@router.get("/health", summary="Health Check", description="Check that the service is up and country rules are loaded.")
async def health_check():
    rules = get_country_rules()
    return {"status": "healthy", "country_rules": len(rules)}
