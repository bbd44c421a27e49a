#!/usr/bin/env python3
"""
Script CLI pour entraîner un modèle ML initial

Ce script lit un jeu de données d'entraînement (JSON ou CSV) et entraîne
le modèle du type demandé, puis le sauvegarde dans le répertoire des modèles.

Usage:
    python scripts/train_initial_model.py KIND DATA [OPTIONS]

Examples:
    # Entraîner le modèle de fatigue depuis un CSV
    python scripts/train_initial_model.py fatigue-risk data/fatigue.csv

    # Entraîner le modèle de syllabus dans un répertoire spécifique
    python scripts/train_initial_model.py syllabus-optimization data/modules.json --models-dir /srv/models
"""

import sys
import argparse
import json
import logging
from pathlib import Path
from typing import Any, Dict, List

import pandas as pd

# Ajouter le répertoire parent au path pour les imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.core.config import settings
from app.core.errors import AnalyticsError
from app.ml.locks import TrainingLockManager
from app.ml.store import ModelKind, ModelStore
from app.ml.training import ModelTrainer, TrainingCoordinator

# Configuration du logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def parse_args():
    """Parse les arguments de la ligne de commande"""
    parser = argparse.ArgumentParser(
        description="Entraîne un modèle ML du moteur d'analytique PilotTrain"
    )

    parser.add_argument(
        "kind",
        choices=[kind.value for kind in ModelKind],
        help="Type de modèle à entraîner",
    )

    parser.add_argument(
        "data",
        type=Path,
        help="Fichier d'entraînement (.json: liste d'objets, .csv: une ligne par exemple)",
    )

    parser.add_argument(
        "--models-dir",
        type=str,
        help="Répertoire de sauvegarde des modèles",
        default=settings.ML_MODELS_PATH
    )

    parser.add_argument(
        "--min-samples",
        type=int,
        help="Nombre minimal d'exemples d'entraînement",
        default=settings.MIN_TRAINING_SAMPLES
    )

    parser.add_argument(
        "--no-lock",
        action="store_true",
        help="Ne pas prendre le verrou Redis d'entraînement (installation hors ligne)"
    )

    return parser.parse_args()


def load_records(path: Path) -> List[Dict[str, Any]]:
    """Charge les lignes d'entraînement depuis un fichier JSON ou CSV."""

    if path.suffix.lower() == ".csv":
        return pd.read_csv(path).to_dict(orient="records")

    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, dict) and "training_data" in data:
        data = data["training_data"]
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a list of training records")
    return data


def main():
    """Fonction principale"""
    args = parse_args()

    logger.info("=" * 60)
    logger.info("PilotTrain ML Model Training Script")
    logger.info("=" * 60)
    logger.info(f"Model kind: {args.kind}")
    logger.info(f"Training data: {args.data}")
    logger.info(f"Models directory: {args.models_dir}")
    logger.info("=" * 60)

    try:
        records = load_records(args.data)
        kind = ModelKind.parse(args.kind)

        store = ModelStore(Path(args.models_dir))
        locks = None if args.no_lock else TrainingLockManager.from_settings(settings)
        coordinator = TrainingCoordinator(ModelTrainer(min_samples=args.min_samples), store, locks)
        try:
            model = coordinator.train_and_save(kind, records)
        finally:
            coordinator.shutdown()
        path = store.path_for(kind)

        logger.info("\n" + "=" * 60)
        logger.info("TRAINING COMPLETED SUCCESSFULLY!")
        logger.info("=" * 60)
        logger.info(f"Model version: {model.model_version}")
        logger.info(f"Model saved to: {path.absolute()}")
        return 0

    except (AnalyticsError, ValueError, OSError) as e:
        logger.error(f"Training failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
