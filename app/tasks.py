"""
Celery Tasks
Background tasks for reservation bookkeeping.
"""

import logging
import time
from datetime import datetime

from app.celery_worker import celery_app
from app.services.excel_manager import ExcelManager

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    max_retries=3,
    default_retry_delay=5,
    autoretry_for=(Exception,),
    retry_backoff=True
)
def export_reservation_to_excel(self, reservation_data: dict) -> dict:
    """
    Append a confirmed reservation to the Excel export.
    This task runs asynchronously via Celery worker.

    Args:
        reservation_data: Dictionary containing reservation fields

    Returns:
        dict: Result of the export operation
    """
    task_id = self.request.id
    reservation_id = reservation_data.get('reservation_id', 'unknown')

    logger.info(f"Task {task_id}: Exporting reservation #{reservation_id}")
    start_time = time.time()

    try:
        result = ExcelManager.export_reservation(reservation_data)

        elapsed = round(time.time() - start_time, 3)
        result['task_id'] = task_id
        result['processing_time_seconds'] = elapsed

        if result['success']:
            logger.info(f"Task {task_id}: Reservation #{reservation_id} exported in {elapsed}s")
        else:
            logger.warning(f"Task {task_id}: Reservation #{reservation_id} failed - {result['message']}")

        return result

    except Exception as e:
        elapsed = round(time.time() - start_time, 3)
        logger.error(f"Task {task_id}: Reservation #{reservation_id} error after {elapsed}s - {e}")

        # Celery will auto-retry based on configuration
        raise


@celery_app.task
def health_check() -> dict:
    """
    Simple health check task to verify Celery is working.
    """
    return {
        'status': 'healthy',
        'worker': 'celery',
        'timestamp': datetime.now().isoformat()
    }


@celery_app.task
def clear_reservation_exports() -> dict:
    """
    Clear the Excel export (for testing/reset purposes).
    """
    success = ExcelManager.clear_all()
    return {
        'success': success,
        'message': 'Excel file cleared' if success else 'Failed to clear Excel file',
        'timestamp': datetime.now().isoformat()
    }
