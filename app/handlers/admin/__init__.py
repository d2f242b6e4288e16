from aiogram import Router

from .base import admin_base_router
from .rewards import admin_rewards_router
from .broadcast import admin_broadcast_router

router = Router()

router.include_router(admin_base_router)
router.include_router(admin_rewards_router)
router.include_router(admin_broadcast_router)
