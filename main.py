from fastapi import FastAPI

from shared.config.database import create_all_tables
from shared.config.settings import APP_NAME

from services.attribute_service.main import attribute_app
from services.identity_service.main import identity_app
from services.inventory_service.main import inventory_app
from services.order_service.main import order_app
from services.product_service.main import product_app

app = FastAPI(title=f"{APP_NAME} Admin Cluster")

@app.on_event("startup")
async def startup_event():
    # Mounted sub-apps do not receive startup events of their own
    await create_all_tables()

@app.get("/health")
async def health_check():
    return {"service": APP_NAME, "status": "running"}

app.mount("/identity", identity_app)
app.mount("/attributes", attribute_app)
app.mount("/products", product_app)
app.mount("/orders", order_app)
app.mount("/inventory", inventory_app)
