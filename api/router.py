from fastapi import APIRouter

from api.routes import health, chat, conversations, credentials, login, quiz, relay

api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(chat.router)
api_router.include_router(conversations.router)
api_router.include_router(credentials.router)
api_router.include_router(login.router)
api_router.include_router(quiz.router)
api_router.include_router(relay.router)
