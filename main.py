import logging
import os
from typing import Any, Dict

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from bson import ObjectId

from database import db, StoredMenuError, create_document, get_documents, get_mess, update_mess, save_menu, timeline_from_document
from menu_timeline import IndexOutOfRange, ValidationError, current_menu, delete_dish, edit_dish, upsert_day
from schemas import MenuDayRequest, Mess, MessCreate, MessUpdate, SubscriptionPlan

logger = logging.getLogger(__name__)

DEFAULT_MESS_IMAGE = "https://images.unsplash.com/photo-1546069901-ba9599a7e63c?auto=format&fit=crop&w=1760&q=80"

app = FastAPI(title="Mess Directory API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "*").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ValidationError)
async def menu_validation_error(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(IndexOutOfRange)
async def menu_index_error(request: Request, exc: IndexOutOfRange):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(StoredMenuError)
async def stored_menu_error(request: Request, exc: StoredMenuError):
    logger.error("%s", exc)
    return JSONResponse(status_code=500, content={"detail": "Stored menu is invalid"})


# Helpers
def object_id(id_str: str) -> ObjectId:
    try:
        return ObjectId(id_str)
    except Exception:
        raise HTTPException(status_code=400, detail="Invalid id")


def require_db():
    if db is None:
        raise HTTPException(status_code=500, detail="Database not available")


def load_mess(mess_id: str) -> Dict[str, Any]:
    require_db()
    doc = get_mess(object_id(mess_id))
    if not doc:
        raise HTTPException(status_code=404, detail="Mess not found")
    return doc


def menu_json(timeline):
    return [day.model_dump(mode="json", by_alias=True, exclude_none=True) for day in timeline]


def mess_json(doc: Dict[str, Any]) -> Dict[str, Any]:
    out = {k: v for k, v in doc.items() if k not in ("_id", "menu", "plans")}
    out["id"] = str(doc["_id"])
    out["plans"] = [SubscriptionPlan.model_validate(p).model_dump() for p in doc.get("plans") or []]
    out["menu"] = menu_json(timeline_from_document(doc))
    # Documents written by Mongoose carry ObjectIds in places such as ownerId.
    return jsonable_encoder(out, custom_encoder={ObjectId: str})


@app.get("/")
def read_root():
    return {"message": "Mess Directory Backend is running"}


# Mess endpoints
@app.get("/api/messes")
def list_messes():
    require_db()
    messes = []
    for doc in get_documents("mess"):
        try:
            today = current_menu(timeline_from_document(doc))
        except StoredMenuError:
            logger.exception("Skipping menu of mess %s", doc["_id"])
            today = None
        messes.append({
            "id": str(doc["_id"]),
            "name": doc.get("name"),
            "type": doc.get("type"),
            "location": doc.get("location"),
            "address": doc.get("address"),
            "contactNumber": doc.get("contactNumber"),
            "description": doc.get("description"),
            "cuisine": doc.get("cuisine", []),
            "image": doc.get("image") or DEFAULT_MESS_IMAGE,
            "todayMenu": menu_json([today])[0]["items"] if today else [],
        })
    return {"messes": messes}


@app.post("/api/messes", status_code=201)
def create_mess(payload: MessCreate):
    require_db()
    mess = Mess.model_validate(payload.model_dump(by_alias=True))
    inserted_id = create_document("mess", mess)
    logger.info("Created mess %s", inserted_id)
    return {"id": inserted_id}


@app.get("/api/messes/{mess_id}")
def get_mess_details(mess_id: str):
    return {"mess": mess_json(load_mess(mess_id))}


@app.put("/api/messes/{mess_id}")
def update_mess_profile(mess_id: str, payload: MessUpdate):
    require_db()
    if not all(v and v.strip() for v in (payload.name, payload.location, payload.address)):
        raise HTTPException(status_code=400, detail="Name, location, and address are required")
    fields = payload.model_dump(by_alias=True, exclude_none=True)
    if not update_mess(object_id(mess_id), fields):
        raise HTTPException(status_code=404, detail="Mess not found")
    return {"updated": True}


# Menu endpoints
def store_menu(mess_id: str, timeline):
    if not save_menu(object_id(mess_id), timeline):
        raise HTTPException(status_code=404, detail="Mess not found")
    return {"menu": menu_json(timeline)}


@app.get("/api/messes/{mess_id}/menu")
def get_menu(mess_id: str):
    return {"menu": menu_json(timeline_from_document(load_mess(mess_id)))}


@app.post("/api/messes/{mess_id}/menu")
def add_menu_items(mess_id: str, payload: MenuDayRequest):
    timeline = timeline_from_document(load_mess(mess_id))
    return store_menu(mess_id, upsert_day(timeline, payload.date, payload.items))


@app.put("/api/messes/{mess_id}/menu/{day_index}/{dish_index}")
def update_menu_item(mess_id: str, day_index: int, dish_index: int, payload: dict):
    timeline = timeline_from_document(load_mess(mess_id))
    return store_menu(mess_id, edit_dish(timeline, day_index, dish_index, payload))


@app.delete("/api/messes/{mess_id}/menu/{day_index}/{dish_index}")
def delete_menu_item(mess_id: str, day_index: int, dish_index: int):
    timeline = timeline_from_document(load_mess(mess_id))
    return store_menu(mess_id, delete_dish(timeline, day_index, dish_index))


@app.get("/test")
def test_database():
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_url": None,
        "database_name": None,
        "connection_status": "Not Connected",
        "collections": []
    }

    try:
        if db is not None:
            response["database"] = "✅ Available"
            response["database_name"] = db.name if hasattr(db, 'name') else "✅ Connected"
            response["connection_status"] = "Connected"

            try:
                collections = db.list_collection_names()
                response["collections"] = collections[:10]
                response["database"] = "✅ Connected & Working"
            except Exception as e:
                logger.exception("Database check failed")
                response["database"] = f"⚠️  Connected but Error: {str(e)[:50]}"
    except Exception as e:
        logger.exception("Database check failed")
        response["database"] = f"❌ Error: {str(e)[:50]}"

    response["database_url"] = "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set"
    response["database_name"] = "✅ Set" if os.getenv("DATABASE_NAME") else "❌ Not Set"

    return response


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
