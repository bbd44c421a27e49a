# Copyright (c) 2025 PilotTrain Analytics. All rights reserved.
# This source code is proprietary and confidential.
# Unauthorized copying, modification, distribution, or derivative works are strictly prohibited without prior written consent.

"""
Tâches Celery pour PilotTrain
"""

from .celery_app import celery_app
from . import ml_tasks

__all__ = [
    "celery_app",
    "ml_tasks",
]
