# budget_api/routers/system.py
from fastapi import APIRouter, Request  # Request gives us app.state
from fastapi.responses import JSONResponse

router = APIRouter(tags=["system"])  # group of routes


def _db_status(request: Request) -> JSONResponse:
    # 200 while the database answers SELECT 1, 503 otherwise
    if request.app.state.db.ping():
        return JSONResponse({"status": "ok", "database": "up"})
    return JSONResponse({"status": "error", "database": "down"}, status_code=503)


@router.get("/health")  # load balancer check
def health(request: Request):
    return _db_status(request)


@router.get("/health/ready")  # ready to take traffic = database reachable
def ready(request: Request):
    return _db_status(request)


@router.get("/health/live")  # process is up; never touches the database
def live():
    return {"status": "ok"}
