import logging
import os
import shutil
import sqlite3
import time
from datetime import datetime

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'
RUN_LOG_FORMAT = '%(asctime)s - %(name)s - [%(module)s] - %(levelname)s - %(message)s'


def _file_handler(log_file, fmt):
    handler = logging.FileHandler(log_file)
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def setup_orchestrator_logger(base_dir):
    """
    Top-level 'orchestrator' logger: DEBUG to orchestrator_logs/traffic_main_<date>.log,
    INFO+ to the console.
    """
    log_dir = os.path.join(base_dir, 'orchestrator_logs')
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, f'traffic_main_{datetime.today().strftime("%Y-%m-%d")}.log')

    logger = logging.getLogger('orchestrator')
    logger.setLevel(logging.DEBUG)

    if not logger.handlers:
        console = logging.StreamHandler()
        console.setLevel(logging.INFO)
        console.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(_file_handler(log_file, LOG_FORMAT))
        logger.addHandler(console)

    logger.propagate = False
    return logger


def get_run_logger(base_dir, run_name):
    """
    Logger for one ingestion run.
    DEBUG to file only, INFO+ to file AND forwarded to the orchestrator console.
    """
    log_dir = os.path.join(base_dir, 'run_logs')
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, f'{run_name}_{datetime.today().strftime("%Y%m%d")}.log')

    # Child logger under orchestrator hierarchy
    logger = logging.getLogger(f'orchestrator.{run_name}')
    logger.setLevel(logging.DEBUG)

    if not logger.handlers:
        logger.addHandler(_file_handler(log_file, RUN_LOG_FORMAT))

        orchestrator_logger = logging.getLogger('orchestrator')

        class PropagateInfoHandler(logging.Handler):
            def emit(self, record):
                if record.levelno >= logging.INFO:
                    orchestrator_logger.handle(record)

        logger.addHandler(PropagateInfoHandler())

    logger.propagate = False
    return logger


def backup_store(store_path, backup_dir, logger=None):
    """
    Snapshot the SQLite store into backup_dir as <stem>_<YYYYMMDD><ext>.

    Uses the sqlite3 online backup API, so pages still held in the -wal file are
    included and the copy is a single self-contained database. A second backup
    on the same day overwrites the first.

    Args:
        store_path: Path to the live store database
        backup_dir: Directory receiving the snapshot
        logger: Logger instance

    Returns:
        str: Path of the snapshot, or None when the store does not exist yet
    """
    logger = logger or logging.getLogger('orchestrator')
    if not os.path.isfile(store_path):
        logger.info(f'No store to back up yet: {store_path}')
        return None

    os.makedirs(backup_dir, exist_ok=True)
    stem, ext = os.path.splitext(os.path.basename(store_path))
    dest_path = os.path.join(backup_dir, f'{stem}_{datetime.today().strftime("%Y%m%d")}{ext}')

    source = sqlite3.connect(store_path)
    target = sqlite3.connect(dest_path)
    try:
        with target:
            source.backup(target)
    finally:
        target.close()
        source.close()

    logger.info(f'Backed up {os.path.basename(store_path)} to {dest_path}')
    return dest_path


def cleanup_old_backups(backup_dir, store_name, retention_days=5, logger=None):
    """
    Delete snapshots of store_name older than retention_days. The newest snapshot
    is always kept, however old.

    Returns:
        int: Number of snapshots deleted
    """
    logger = logger or logging.getLogger('orchestrator')
    if not os.path.isdir(backup_dir):
        logger.info(f'Backup directory does not exist: {backup_dir}')
        return 0

    stem, ext = os.path.splitext(store_name)
    snapshots = [
        os.path.join(backup_dir, entry)
        for entry in os.listdir(backup_dir)
        if entry.startswith(f'{stem}_') and entry.endswith(ext)
    ]
    snapshots = [path for path in snapshots if os.path.isfile(path)]
    snapshots.sort(key=os.path.getmtime)

    cutoff = time.time() - retention_days * 86400
    deleted = 0
    for path in snapshots[:-1]:
        if os.path.getmtime(path) >= cutoff:
            continue
        try:
            os.remove(path)
            deleted += 1
            logger.info(f'Deleted old backup file: {path}')
        except OSError as e:
            logger.warning(f'Failed to delete {path}: {e}')
    return deleted


def archive_processed_files(upload_dir, file_names, logger):
    """Move processed upload files into upload_dir/archive (overwriting same names)."""
    if not file_names:
        logger.info(f'No files to archive in: {upload_dir}')
        return 0

    archive_dir = os.path.join(upload_dir, 'archive')
    os.makedirs(archive_dir, exist_ok=True)

    archived_count = 0
    for file_name in file_names:
        src_path = os.path.join(upload_dir, file_name)
        if not os.path.isfile(src_path):
            continue
        try:
            shutil.move(src_path, os.path.join(archive_dir, file_name))
            archived_count += 1
            logger.debug(f'Archived: {file_name}')
        except OSError as e:
            logger.error(f'Error archiving file {file_name}: {e!s}')

    if archived_count > 0:
        logger.debug(f'Successfully archived {archived_count} file(s) to: {archive_dir}')
    return archived_count
