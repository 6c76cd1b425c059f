import threading

import pytest

from campusstore.errors import IOFailure
from campusstore.storage.sequencer import IdSequencer
from campusstore.utils.locks import KeyedLocks


def make_sequencer():
    return IdSequencer(KeyedLocks())


def test_first_id_is_one(tmp_path):
    index = str(tmp_path / 'IDs.txt')
    assert make_sequencer().next_id(index) == 1


def test_allocations_count_up(tmp_path):
    index = str(tmp_path / 'nested' / 'IDs.txt')
    seq = make_sequencer()
    assert [seq.allocate(index) for _ in range(5)] == [1, 2, 3, 4, 5]
    assert seq.list_ids(index) == [1, 2, 3, 4, 5]


def test_next_id_follows_highest_recorded(tmp_path):
    index = tmp_path / 'IDs.txt'
    index.write_text("1\n9\n4\n")
    assert make_sequencer().next_id(str(index)) == 10


def test_malformed_lines_are_skipped(tmp_path):
    index = tmp_path / 'IDs.txt'
    index.write_text("1\nabc\n\n5\n")
    seq = make_sequencer()
    assert seq.list_ids(str(index)) == [1, 5]
    assert seq.allocate(str(index)) == 6


def test_list_ids_drops_duplicates(tmp_path):
    index = tmp_path / 'IDs.txt'
    index.write_text("3\n1\n3\n2\n")
    assert make_sequencer().list_ids(str(index)) == [3, 1, 2]


def test_contains(tmp_path):
    index = str(tmp_path / 'IDs.txt')
    seq = make_sequencer()
    seq.record_id(index, 42)
    assert seq.contains(index, 42)
    assert not seq.contains(index, 41)


def test_concurrent_allocations_are_distinct(tmp_path):
    index = str(tmp_path / 'IDs.txt')
    seq = make_sequencer()
    issued = []
    issued_lock = threading.Lock()

    def worker():
        for _ in range(25):
            new_id = seq.allocate(index)
            with issued_lock:
                issued.append(new_id)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(issued) == list(range(1, 201))
    assert seq.list_ids(index) == list(range(1, 201))


def test_unreadable_index_raises_io_failure(tmp_path):
    index = tmp_path / 'IDs.txt'
    index.mkdir()
    seq = make_sequencer()
    with pytest.raises(IOFailure):
        seq.next_id(str(index))
    with pytest.raises(IOFailure):
        seq.record_id(str(index), 1)
