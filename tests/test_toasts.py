"""
Toast Queue Tests
=================

Verifies:
1. Ids are unique even when toasts are created back to back
2. Toasts expire after the configured duration
3. Manual removal cancels the pending expiry
4. Removing an unknown id is a no-op
"""

from frontend.state.toasts import ToastQueue, ToastSeverity


class TestToastQueue:

    def test_unique_ids_in_insertion_order(self, scheduler):
        queue = ToastQueue(scheduler)
        toasts = [queue.show(f"message {i}") for i in range(50)]
        assert len({t.id for t in toasts}) == 50
        assert queue.items == tuple(toasts)

    def test_expiry(self, scheduler):
        queue = ToastQueue(scheduler, duration_ms=3000)
        first = queue.show("first")
        scheduler.advance(1.0)
        second = queue.show("second", ToastSeverity.ERROR)
        scheduler.advance(2.0)
        assert queue.items == (second,)
        assert first.id not in queue
        scheduler.advance(1.0)
        assert len(queue) == 0

    def test_manual_removal_cancels_timer(self, scheduler):
        queue = ToastQueue(scheduler)
        toast = queue.show("bye")
        assert scheduler.pending == 1
        assert queue.remove(toast.id) is True
        assert scheduler.pending == 0
        assert scheduler.advance(5.0) == 0

    def test_remove_unknown_is_noop(self, scheduler):
        queue = ToastQueue(scheduler)
        kept = queue.show("keep")
        assert queue.remove(999) is False
        assert queue.remove(kept.id) is True
        assert queue.remove(kept.id) is False
        assert queue.items == ()

    def test_severity_accepts_value(self, scheduler):
        queue = ToastQueue(scheduler)
        assert queue.show("ok", "success").severity is ToastSeverity.SUCCESS

    def test_on_change(self, scheduler):
        changes = []
        queue = ToastQueue(scheduler, duration_ms=100, on_change=lambda: changes.append(len(queue)))
        queue.show("a")
        queue.show("b")
        scheduler.advance(0.1)
        assert changes == [1, 2, 1, 0]

    def test_clear(self, scheduler):
        queue = ToastQueue(scheduler)
        queue.show("a")
        queue.show("b")
        queue.clear()
        assert len(queue) == 0
        assert scheduler.pending == 0
