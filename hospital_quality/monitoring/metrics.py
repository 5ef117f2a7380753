import os
import time

import psutil


class MetricsCollector:
    """Wall time and resident memory of the current pipeline run."""

    def __init__(self):
        self.start_time = time.time()
        self.stage_times = {}
        self._stage_start = None

    def start_stage(self, name: str):
        self._stage_start = (name, time.time())

    def end_stage(self):
        if self._stage_start is None:
            return
        name, started = self._stage_start
        self.stage_times[name] = round(time.time() - started, 3)
        self._stage_start = None

    def collect(self):
        metrics = {
            "duration_sec": round(time.time() - self.start_time, 2),
            "stage_duration_sec": dict(self.stage_times),
        }

        process = psutil.Process(os.getpid())
        metrics["memory_mb"] = round(process.memory_info().rss / 1024 / 1024, 2)

        return metrics
