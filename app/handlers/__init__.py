"""
Handlers module - modularized handlers for Telegram bot.

Root aggregation: channel membership, user commands, admin commands.
"""
from aiogram import Router

from .channel import channel_router
from .user import router as user_router
from .admin import router as admin_router

router = Router()

# Admin before user: the admin document handler must see uploads first
router.include_router(channel_router)
router.include_router(admin_router)
router.include_router(user_router)
