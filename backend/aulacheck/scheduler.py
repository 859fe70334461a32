"""
Planificateur APScheduler pour la réconciliation périodique des métriques des cours.

Le job recalcule les compteurs et moyennes en cache de tous les cours
et signale les demandes d'inscription approuvées sans élève inscrit.
"""

import logging

from apscheduler.schedulers.background import BackgroundScheduler

from aulacheck.config import settings
from aulacheck.database import SessionLocal

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler()


def _reconcile_scheduled() -> None:
    """
    Tâche planifiée : réconciliation de tous les cours.
    Import local pour éviter les imports circulaires.
    """
    from aulacheck.services.reconciliation_service import reconcile_all

    db = SessionLocal()
    try:
        reconcile_all(db)
    except Exception as exc:
        db.rollback()
        logger.error("Erreur lors de la réconciliation planifiée : %s", exc, exc_info=True)
    finally:
        db.close()


def start_scheduler() -> None:
    """Démarre le planificateur en arrière-plan (appelé au démarrage de l'API)."""
    if not settings.SCHEDULER_ENABLED:
        logger.info("Scheduler désactivé (SCHEDULER_ENABLED=false).")
        return

    scheduler.add_job(
        _reconcile_scheduled,
        trigger="interval",
        minutes=settings.RECONCILE_INTERVAL_MINUTES,
        id="course_metrics_reconciliation",
        replace_existing=True,
    )
    scheduler.start()
    logger.info(
        "Scheduler démarré : réconciliation toutes les %d minutes.",
        settings.RECONCILE_INTERVAL_MINUTES,
    )


def stop_scheduler() -> None:
    """Arrête le planificateur proprement (appelé à l'arrêt de l'API)."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler arrêté.")
