"""
Wayfinder API — About Route
============================

GET /about → {"team": [{"id", "name", "role"}, ...]}

The roster is the team collection (team.json), read per request like the
other collections; a missing or malformed file yields an empty team.
Behind the API-key gate like every data endpoint.
"""

from fastapi import APIRouter, Request

from wayfinder.schemas.common import AboutResponse, TeamMember

router = APIRouter(tags=["About"])


@router.get("/about", response_model=AboutResponse, summary="Who runs this service")
async def about(request: Request) -> AboutResponse:
    records = await request.app.state.team_store.read_all()
    return AboutResponse(
        team=[TeamMember.model_validate(r) for r in records if isinstance(r, dict)]
    )
