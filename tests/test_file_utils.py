import os
import time

from traffic_stats.consolidate.blob_store import SqliteBlobStore
from traffic_stats.file_utils import archive_processed_files, backup_store, cleanup_old_backups


def test_backup_snapshot_is_a_readable_store(tmp_path, logger):
    store_path = tmp_path / 'db_files' / 'traffic_store.db'
    store = SqliteBlobStore(store_path)
    store.save('ledger', b'[]')

    dest = backup_store(str(store_path), str(tmp_path / 'backups'), logger=logger)

    assert os.path.basename(dest).startswith('traffic_store_') and dest.endswith('.db')
    assert SqliteBlobStore(dest).load('ledger') == b'[]'


def test_backup_without_store_is_skipped(tmp_path, logger):
    assert backup_store(str(tmp_path / 'missing.db'), str(tmp_path / 'backups'), logger=logger) is None


def test_cleanup_removes_only_expired_snapshots(tmp_path, logger):
    ten_days_ago = time.time() - 10 * 86400
    twenty_days_ago = time.time() - 20 * 86400
    oldest = tmp_path / 'traffic_store_20240101.db'
    old = tmp_path / 'traffic_store_20240111.db'
    fresh = tmp_path / 'traffic_store_20991231.db'
    unrelated = tmp_path / 'other_20240101.db'
    for path, mtime in ((oldest, twenty_days_ago), (old, ten_days_ago), (fresh, None), (unrelated, twenty_days_ago)):
        path.write_bytes(b'')
        if mtime is not None:
            os.utime(path, (mtime, mtime))

    deleted = cleanup_old_backups(str(tmp_path), 'traffic_store.db', retention_days=5, logger=logger)

    assert deleted == 2
    assert fresh.exists()
    assert unrelated.exists()


def test_cleanup_keeps_newest_snapshot_even_when_expired(tmp_path, logger):
    only = tmp_path / 'traffic_store_20240101.db'
    only.write_bytes(b'')
    ten_days_ago = time.time() - 10 * 86400
    os.utime(only, (ten_days_ago, ten_days_ago))

    assert cleanup_old_backups(str(tmp_path), 'traffic_store.db', retention_days=5, logger=logger) == 0
    assert only.exists()


def test_archive_moves_processed_files(tmp_path, logger):
    (tmp_path / 'a.pdf').write_bytes(b'%PDF')
    (tmp_path / 'b.csv').write_text('x')

    archived = archive_processed_files(tmp_path, ['a.pdf', 'missing.pdf'], logger)

    assert archived == 1
    assert (tmp_path / 'archive' / 'a.pdf').exists()
    assert (tmp_path / 'b.csv').exists()
    assert archive_processed_files(tmp_path, [], logger) == 0
