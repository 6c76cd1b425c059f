"""
Generic create/load/save over one record file per entity.

A family is a set of records sharing a path prefix and (usually) one index file:
the record for id 7 of a family with prefix ``data/map/2-`` lives at
``data/map/2-7.txt``.
"""
import logging
import os
import tempfile

from campusstore.errors import Conflict, IOFailure, NotFound, ParseError
from campusstore.storage import codec

logger = logging.getLogger(__name__)


def read_text(path):
    """File contents, or None if the file does not exist."""
    try:
        with open(path, encoding='utf-8') as fh:
            return fh.read()
    except FileNotFoundError:
        return None
    except OSError as e:
        logger.error("Cannot read %s: %s", path, e)
        raise IOFailure(path, e) from e


def atomic_write(path, text):
    """Write to a temp file beside ``path`` and rename it over the original."""
    directory = os.path.dirname(path) or '.'
    tmp_path = None
    try:
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix='.tmp-', suffix='.txt')
        with os.fdopen(fd, 'w', encoding='utf-8') as fh:
            fh.write(text)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_path, path)
    except OSError as e:
        if tmp_path and os.path.exists(tmp_path):
            os.remove(tmp_path)
        logger.error("Cannot write %s: %s", path, e)
        raise IOFailure(path, e) from e


class Family:
    """Naming convention and index file for one class of records."""

    def __init__(self, name, kind, prefix, index_path=None):
        self.name = name
        self.kind = kind
        self.prefix = prefix
        self.index_path = index_path

    def record_path(self, entity_id, suffix=''):
        return f"{self.prefix}{int(entity_id)}{suffix}.txt"

    def __repr__(self):
        return f"Family({self.name!r}, prefix={self.prefix!r})"


class EntityRepository:

    def __init__(self, family, sequencer):
        self.family = family
        self.sequencer = sequencer
        self.id_attr = codec.SCHEMAS[family.kind][0].name

    def _id_of(self, entity):
        return getattr(entity, self.id_attr)

    def create(self, build):
        """Allocate the next id, write ``build(new_id)`` and return it."""
        if self.family.index_path is None:
            raise TypeError(f"{self.family.name} ids are issued by their parent record")
        # shared with insert(): allocation and write are one step
        with self.sequencer.locks.lock_for(self.family.index_path):
            new_id = self.sequencer.allocate(self.family.index_path)
            entity = build(new_id)
            self.save(entity)
        logger.info("Created %s %d", self.family.name, new_id)
        return entity

    def insert(self, entity):
        """Write an entity whose id the caller chose; refuses to overwrite one."""
        entity_id = self._id_of(entity)
        key = self.family.index_path or self.family.record_path(entity_id)
        with self.sequencer.locks.lock_for(key):
            if self.exists(entity_id):
                raise Conflict(f"{self.family.name} {entity_id} already exists")
            index_path = self.family.index_path
            if index_path and not self.sequencer.contains(index_path, entity_id):
                self.sequencer.record_id(index_path, entity_id)
            self.save(entity)
        logger.info("Inserted %s %d", self.family.name, entity_id)
        return entity

    def load(self, entity_id):
        path = self.family.record_path(entity_id)
        text = read_text(path)
        if text is None:
            raise NotFound(self.family.name, entity_id)
        entity = codec.decode(self.family.kind, text, path)
        if self._id_of(entity) != entity_id:
            raise ParseError(f"record holds id {self._id_of(entity)}, expected {entity_id}", path)
        return entity

    def save(self, entity):
        path = self.family.record_path(self._id_of(entity))
        atomic_write(path, codec.encode(entity))

    def delete(self, entity_id):
        path = self.family.record_path(entity_id)
        try:
            os.remove(path)
        except FileNotFoundError:
            raise NotFound(self.family.name, entity_id)
        except OSError as e:
            logger.error("Cannot delete %s: %s", path, e)
            raise IOFailure(path, e) from e
        logger.info("Deleted %s %d", self.family.name, entity_id)

    def exists(self, entity_id):
        return os.path.exists(self.family.record_path(entity_id))

    def list_ids(self):
        if self.family.index_path is None:
            return []
        return self.sequencer.list_ids(self.family.index_path)

    def load_many(self, ids):
        """Load each id, skipping references whose record file is gone."""
        entities = []
        for entity_id in ids:
            try:
                entities.append(self.load(entity_id))
            except NotFound:
                logger.warning("Skipping broken reference to %s %d", self.family.name, entity_id)
        return entities

    def load_all(self):
        return self.load_many(self.list_ids())
