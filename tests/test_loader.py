from rosterdesk.common.loader import BackgroundLoader


class Recorder:
    def __init__(self):
        self.loaded = []
        self.failed = []


class TestBackgroundLoader:
    def test_success_delivered_on_drain(self):
        rec = Recorder()
        loader = BackgroundLoader(lambda: ["s1"], rec.loaded.append, rec.failed.append)

        loader.start(threaded=False)
        assert rec.loaded == []
        assert loader.busy

        assert loader.drain() == 1
        assert rec.loaded == [["s1"]]
        assert not loader.busy

    def test_failure_reported_and_previous_value_kept(self):
        rec = Recorder()
        results = iter([["old"], RuntimeError("network down")])

        def fetch():
            value = next(results)
            if isinstance(value, Exception):
                raise value
            return value

        loader = BackgroundLoader(fetch, rec.loaded.append, rec.failed.append)
        loader.start(threaded=False); loader.drain()
        loader.start(threaded=False); loader.drain()

        assert rec.loaded == [["old"]]
        assert [str(e) for e in rec.failed] == ["network down"]

    def test_failure_without_handler(self):
        rec = Recorder()
        loader = BackgroundLoader(lambda: 1 / 0, rec.loaded.append)
        loader.start(threaded=False)
        assert loader.drain() == 1
        assert rec.loaded == []

    def test_stale_result_is_dropped(self):
        rec = Recorder()
        loader = BackgroundLoader(lambda: None, rec.loaded.append)
        # simulate a slow first call finishing after a second one
        loader._started = 2
        loader._results.put((2, True, "new"))
        loader._results.put((1, True, "old"))

        assert loader.drain() == 1
        assert rec.loaded == ["new"]

    def test_generations_increase(self):
        loader = BackgroundLoader(lambda: None, lambda _v: None)
        assert loader.start(threaded=False) == 1
        assert loader.start(threaded=False) == 2
        assert loader.drain() == 2
