"""Workout upload and query routes."""
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile

from fitlog.charts import build_chart_series
from fitlog.config import Settings, get_settings
from fitlog.db.engine import get_engine
from fitlog.db.store import WorkoutStore
from fitlog.ingest.pipeline import IngestionService
from fitlog.ingest.types import RawActivityFile
from fitlog.models.workout import WorkoutSummary

router = APIRouter()

_ALLOWED_EXTENSION = ".fit"


def get_store() -> WorkoutStore:
    """FastAPI dependency returning a store bound to the app engine."""
    return WorkoutStore(get_engine())


@router.post("/", response_model=WorkoutSummary, status_code=201)
def upload_workout(
    file: UploadFile = File(...),
    store: WorkoutStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    """Ingest one .fit file and return the stored summary."""
    filename = file.filename or ""
    if not filename.lower().endswith(_ALLOWED_EXTENSION):
        raise HTTPException(status_code=415, detail="Only .fit files are accepted")

    # Read one byte past the limit so oversize uploads are detectable
    data = file.file.read(settings.max_upload_bytes + 1)
    if len(data) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"File exceeds {settings.max_upload_bytes} bytes",
        )

    service = IngestionService(store, settings)
    result = service.ingest(RawActivityFile(data=data, filename=filename))
    if not result.ok:
        err = result.error
        raise HTTPException(
            status_code=500 if err.server_fault else 422,
            detail={"stage": err.stage.value, "message": err.message},
        )
    return result.summary


@router.get("/", response_model=List[WorkoutSummary])
def list_workouts(store: WorkoutStore = Depends(get_store)):
    """List all workouts, newest upload first."""
    return store.list_all()


@router.get("/charts")
def workout_charts(store: WorkoutStore = Depends(get_store)) -> Dict[str, List[Any]]:
    """Chart series over all workouts, oldest first."""
    return build_chart_series(store.list_all())


@router.get("/{workout_id}", response_model=WorkoutSummary)
def get_workout(workout_id: int, store: WorkoutStore = Depends(get_store)):
    workout = store.get(workout_id)
    if not workout:
        raise HTTPException(status_code=404, detail="Workout not found")
    return workout


@router.delete("/{workout_id}", status_code=204)
def delete_workout(workout_id: int, store: WorkoutStore = Depends(get_store)):
    if not store.delete(workout_id):
        raise HTTPException(status_code=404, detail="Workout not found")
    return Response(status_code=204)
