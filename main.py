from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import uvicorn

from core.config import settings
from core.setup import lifespan
from api.router import api_router


app = FastAPI(title="GreenBot API", lifespan=lifespan)
app.include_router(api_router, prefix='/api')

# CORS
origins = [o.strip() for o in settings.FRONTEND_HOST.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials="*" not in origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get('/')
def root():
    return {'message': "GreenBot - sustainability assistant backend"}


def run() -> None:
    """ Serve the app with uvicorn using HOST and PORT from settings """
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL.lower())

if __name__ == "__main__":
    run()
