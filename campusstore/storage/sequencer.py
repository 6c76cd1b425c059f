"""
Id allocation over append-only index files.

An index file lists every id ever issued for one family, one per line. The next
id is one past the highest id recorded; deleted records keep their id retired in
the ledger so it is never handed out again.
"""
import logging
import os

from campusstore.errors import IOFailure

logger = logging.getLogger(__name__)


class IdSequencer:

    def __init__(self, locks):
        self.locks = locks

    def _read_ids(self, index_path):
        try:
            with open(index_path, encoding='utf-8') as fh:
                lines = fh.readlines()
        except FileNotFoundError:
            return []
        except OSError as e:
            logger.error("Cannot read index %s: %s", index_path, e)
            raise IOFailure(index_path, e) from e

        ids = []
        for lineno, line in enumerate(lines, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                ids.append(int(line))
            except ValueError:
                logger.warning("Skipping malformed line %d in %s: %r", lineno, index_path, line)
        return ids

    def next_id(self, index_path):
        ids = self._read_ids(index_path)
        return max(ids) + 1 if ids else 1

    def record_id(self, index_path, entity_id):
        parent = os.path.dirname(index_path)
        try:
            if parent:
                os.makedirs(parent, exist_ok=True)
            with open(index_path, 'a', encoding='utf-8') as fh:
                fh.write(f"{int(entity_id)}\n")
        except OSError as e:
            logger.error("Cannot append to index %s: %s", index_path, e)
            raise IOFailure(index_path, e) from e

    def allocate(self, index_path):
        """Scan and append as one exclusive step; returns the new id."""
        with self.locks.lock_for(index_path):
            new_id = self.next_id(index_path)
            self.record_id(index_path, new_id)
        logger.debug("Allocated id %d in %s", new_id, index_path)
        return new_id

    def list_ids(self, index_path):
        """Ids in ledger order, without duplicates."""
        seen = set()
        ordered = []
        for entity_id in self._read_ids(index_path):
            if entity_id not in seen:
                seen.add(entity_id)
                ordered.append(entity_id)
        return ordered

    def contains(self, index_path, entity_id):
        return entity_id in self._read_ids(index_path)
