"""
Tests for the edit inbox handoff.
"""

import sys
import threading
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from pollution.edits import EditQueue, PendingEdit


def test_drain_moves_inbox_to_working():
    q = EditQueue()
    q.enqueue(PendingEdit("smoke", 1, 2, 3.0))
    q.enqueue(PendingEdit("smoke", 0, 0, -1.0))
    drained = q.drain_for_step()
    assert [e.modifier for e in drained] == [3.0, -1.0]
    assert q.working is drained
    assert len(q) == 0
    assert q.drain_for_step() == []


def test_enqueue_after_drain_goes_to_next_inbox():
    q = EditQueue()
    q.enqueue(PendingEdit("smoke", 1, 1, 1.0))
    working = q.drain_for_step()
    q.enqueue(PendingEdit("smoke", 2, 2, 2.0))
    assert len(working) == 1
    assert len(q) == 1


def test_concurrent_producers():
    q = EditQueue()
    per_thread = 500

    def produce(i):
        for k in range(per_thread):
            q.enqueue(PendingEdit("smoke", i, k, 1.0))

    threads = [threading.Thread(target=produce, args=(i,)) for i in range(8)]
    for t in threads:
        t.start()
    drained = []
    for t in threads:
        t.join()
    drained.extend(q.drain_for_step())
    assert len(drained) == 8 * per_thread
    assert len(q) == 0
