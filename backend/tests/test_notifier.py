"""
Tests for preset change notification.
"""

import threading

from pattern_presets.presets.notifier import ChangeNotifier


class TestInProcess:

    def test_subscribe_and_notify(self):
        notifier = ChangeNotifier()
        calls = []
        notifier.subscribe(lambda: calls.append("a"))
        notifier.subscribe(lambda: calls.append("b"))

        notifier.notify()
        assert calls == ["a", "b"]

    def test_unsubscribe(self):
        notifier = ChangeNotifier()
        calls = []
        unsubscribe = notifier.subscribe(lambda: calls.append(1))
        unsubscribe()
        unsubscribe()

        notifier.notify()
        assert calls == []
        assert notifier.listener_count() == 0

    def test_failing_listener_does_not_stop_others(self):
        notifier = ChangeNotifier()
        calls = []

        def broken():
            raise RuntimeError("listener bug")

        notifier.subscribe(broken)
        notifier.subscribe(lambda: calls.append(1))

        notifier.notify()
        assert calls == [1]


class TestCrossContext:
    """Two notifiers sharing one signal file stand in for two open instances."""

    def test_poll_sees_other_context(self, tmp_path):
        signal = tmp_path / "presets.signal"
        writer = ChangeNotifier(signal)
        reader = ChangeNotifier(signal)
        calls = []
        reader.subscribe(lambda: calls.append(1))

        assert reader.poll() is False
        writer.notify()
        assert reader.poll() is True
        assert reader.poll() is False
        assert calls == [1]

    def test_own_writes_not_reported(self, tmp_path):
        notifier = ChangeNotifier(tmp_path / "presets.signal")
        notifier.notify()
        assert notifier.poll() is False

    def test_poll_without_signal_file(self):
        assert ChangeNotifier().poll() is False

    def test_polling_thread(self, tmp_path):
        signal = tmp_path / "presets.signal"
        writer = ChangeNotifier(signal)
        reader = ChangeNotifier(signal)
        fired = threading.Event()
        reader.subscribe(fired.set)

        reader.start_polling(interval=0.01)
        try:
            writer.notify()
            assert fired.wait(timeout=5.0)
        finally:
            reader.stop_polling()
        assert reader._thread is None
