import os
import threading
from unittest.mock import patch

import pytest

from campusstore.errors import Conflict, IOFailure, NotFound, ParseError
from campusstore.models import User
from campusstore.storage.repository import atomic_write, read_text


def new_user(user_id, name='Alice'):
    return User(user_id, name, f'{name.lower()}@uni.edu')


def test_create_writes_record_and_index(store):
    user = store.users.create(lambda new_id: new_user(new_id))
    assert user.user_id == 1
    assert os.path.exists(os.path.join(store.data_dir, 'users', '1.txt'))
    assert store.users.list_ids() == [1]
    assert store.users.load(1) == user


def test_load_missing_raises_not_found(store):
    with pytest.raises(NotFound) as excinfo:
        store.users.load(99)
    assert excinfo.value.entity_id == 99


def test_save_overwrites_whole_record(store):
    user = store.users.create(lambda new_id: new_user(new_id))
    user.name = 'Alicia'
    store.users.save(user)
    assert store.users.load(user.user_id).name == 'Alicia'


def test_insert_refuses_existing_id(store):
    store.users.insert(new_user(300))
    with pytest.raises(Conflict):
        store.users.insert(new_user(300, 'Bob'))
    assert store.users.list_ids() == [300]


def test_delete_keeps_id_retired(store):
    repo = store.users
    first = repo.create(lambda new_id: new_user(new_id))
    repo.delete(first.user_id)
    assert not repo.exists(first.user_id)
    second = repo.create(lambda new_id: new_user(new_id, 'Bob'))
    assert second.user_id == 2


def test_delete_missing_raises_not_found(store):
    with pytest.raises(NotFound):
        store.users.delete(5)


def test_load_all_skips_broken_references(store):
    repo = store.users
    for name in ('Alice', 'Bob', 'Carol'):
        repo.create(lambda new_id, name=name: new_user(new_id, name))
    os.remove(os.path.join(store.data_dir, 'users', '2.txt'))

    names = [u.name for u in repo.load_all()]
    assert names == ['Alice', 'Carol']


def test_corrupt_record_raises_parse_error(store):
    repo = store.users
    user = repo.create(lambda new_id: new_user(new_id))
    path = repo.family.record_path(user.user_id)
    with open(path, 'w') as fh:
        fh.write("%campus user 1\n1\nAlice\n")
    with pytest.raises(ParseError) as excinfo:
        repo.load(user.user_id)
    assert excinfo.value.path == path


def test_record_with_wrong_id_is_rejected(store):
    repo = store.users
    repo.create(lambda new_id: new_user(new_id))
    atomic_write(repo.family.record_path(2), "%campus user 1\n1\nAlice\na@uni.edu\nStudent\n")
    with pytest.raises(ParseError, match="expected 2"):
        repo.load(2)


def test_atomic_write_leaves_no_temp_files(tmp_path):
    path = str(tmp_path / 'deep' / 'record.txt')
    atomic_write(path, "first\n")
    atomic_write(path, "second\n")
    assert read_text(path) == "second\n"
    assert os.listdir(tmp_path / 'deep') == ['record.txt']


def test_read_text_missing_file(tmp_path):
    assert read_text(str(tmp_path / 'nope.txt')) is None


def test_parent_ids_come_from_parent(store):
    with pytest.raises(TypeError):
        store.feedback(1).create(lambda new_id: None)


def test_failed_write_keeps_previous_record(store):
    repo = store.users
    user = repo.create(lambda new_id: new_user(new_id))
    path = repo.family.record_path(user.user_id)
    with open(path) as fh:
        before = fh.read()

    user.name = 'Alicia'
    with patch('campusstore.storage.repository.os.replace', side_effect=OSError('disk full')):
        with pytest.raises(IOFailure) as excinfo:
            repo.save(user)

    assert excinfo.value.path == path
    with open(path) as fh:
        assert fh.read() == before
    assert [name for name in os.listdir(os.path.dirname(path)) if name.startswith('.tmp-')] == []


def test_explicit_insert_waits_for_running_create(store):
    repo = store.users
    outcome = []

    def insert_same_id(user_id):
        try:
            repo.insert(new_user(user_id, 'Mallory'))
            outcome.append('inserted')
        except Conflict:
            outcome.append('conflict')

    racer = []

    def build(new_id):
        racer.append(threading.Thread(target=insert_same_id, args=(new_id,)))
        racer[0].start()
        return new_user(new_id)

    created = repo.create(build)
    racer[0].join()

    assert outcome == ['conflict']
    assert repo.load(created.user_id).name == 'Alice'
