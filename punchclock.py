#!/usr/bin/env python3
"""
punchclock.py - shared hour clock (single-file edition)

Features:
- one clock (accumulator) shared by any number of worker handles (recorders)
- two program variants: punch clock and stamping clock
- lock-serialized adds so concurrent workers keep an exact total
- tally arbitrary hours across N workers, optionally on threads
- simple config persisted to config.json
"""

import os
import json
import threading
import click

CONFIG_FILE = "config.json"
DEFAULT_CONFIG = {"variant": "punch", "workers": 2}

# Recorder 0 punches 10 then 5, recorder 1 punches 10.
DEMO_SHIFT = ((0, 10), (0, 5), (1, 10))


class ClockError(Exception):
    """Base error for the clock."""


class InvalidInput(ClockError, ValueError):
    """A quantity that cannot be added to a clock."""


class InvalidArgument(ClockError, TypeError):
    """A recorder was constructed without a usable clock."""


class ConfigError(ClockError):
    pass


# ---------------- Clock ----------------
class Accumulator:
    """Running total of hours. Only ever grows."""

    verb = "recorded"

    def __init__(self):
        self._total = 0
        # Serializes adds from recorders running on separate threads.
        self._lock = threading.Lock()

    def add(self, quantity):
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise InvalidInput(f"quantity must be an integer, got {quantity!r}")
        if quantity < 0:
            raise InvalidInput(f"quantity must be non-negative, got {quantity}")
        with self._lock:
            self._total += quantity

    def total(self):
        return self._total

    def report(self):
        return f"Totally {self.verb} {self.total()}"

    def __repr__(self):
        return f"{type(self).__name__}(total={self._total})"


class PunchClock(Accumulator):
    verb = "punched"


class StampingClock(Accumulator):
    verb = "stamped"


VARIANTS = {"punch": PunchClock, "stamp": StampingClock}


def make_clock(variant):
    try:
        return VARIANTS[variant]()
    except KeyError:
        raise ConfigError(f"Unknown variant: {variant}. Known variants: {list(VARIANTS)}") from None


# ---------------- Recorder ----------------
class Recorder:
    """Handle that forwards hours to a clock it does not own.

    An unbound recorder (see ``unbound()`` and ``detach()``) silently ignores
    ``record`` calls instead of raising.
    """

    def __init__(self, clock, unbound=False):
        if unbound:
            if clock is not None:
                raise InvalidArgument("an unbound Recorder takes no clock")
        elif not isinstance(clock, Accumulator):
            raise InvalidArgument(f"Recorder needs a clock, got {clock!r}")
        self._clock = clock

    @classmethod
    def unbound(cls):
        return cls(None, unbound=True)

    @property
    def clock(self):
        """The bound clock, or None once detached."""
        return self._clock

    @property
    def bound(self):
        return self._clock is not None

    def detach(self):
        self._clock = None

    def record(self, quantity):
        if self._clock is None:
            return
        self._clock.add(quantity)


# ---------------- Shifts ----------------
def distribute(hours, recorders):
    """Assign hours to recorder indexes round-robin."""
    if recorders < 1:
        raise InvalidArgument(f"need at least one recorder, got {recorders}")
    return [(i % recorders, h) for i, h in enumerate(hours)]


def run_shift(clock, shift=DEMO_SHIFT, recorders=2, on_record=None):
    """Replay (recorder_index, hours) pairs against clock in order and return its total."""
    handles = [Recorder(clock) for _ in range(recorders)]
    for index, hours in shift:
        handles[index].record(hours)
        if on_record:
            on_record(index, hours)
    return clock.total()


def record_concurrently(clock, hours, workers=2, on_record=None):
    """Record hours from `workers` threads, each with its own Recorder, and return the total."""
    shift = distribute(hours, workers)
    errors = []

    def _worker_loop(recorder, index):
        try:
            for i, h in shift:
                if i == index:
                    recorder.record(h)
                    if on_record:
                        on_record(index, h)
        except ClockError as e:
            errors.append(e)

    threads = []
    for i in range(workers):
        t = threading.Thread(target=_worker_loop, args=(Recorder(clock), i), name=f"worker-{i}", daemon=True)
        t.start()
        threads.append(t)
    for t in threads:
        t.join()
    if errors:
        raise errors[0]
    return clock.total()


# ---------------- Config ----------------
def load_config():
    cfg = dict(DEFAULT_CONFIG)
    if os.path.exists(CONFIG_FILE):
        with open(CONFIG_FILE, "r") as f:
            try:
                stored = json.load(f)
            except ValueError as e:
                raise ConfigError(f"{CONFIG_FILE} is not valid JSON: {e}") from None
        if not isinstance(stored, dict):
            raise ConfigError(f"{CONFIG_FILE} must hold a JSON object, got {type(stored).__name__}")
        cfg.update(stored)
    return cfg


def save_config(cfg):
    with open(CONFIG_FILE, "w") as f:
        json.dump(cfg, f, indent=2)


def validate_config(cfg):
    if not isinstance(cfg.get("variant"), str) or cfg["variant"] not in VARIANTS:
        raise ConfigError(f"Unknown variant: {cfg.get('variant')}. Known variants: {list(VARIANTS)}")
    workers = cfg.get("workers")
    if isinstance(workers, bool) or not isinstance(workers, int) or workers < 1:
        raise ConfigError(f"workers must be a positive integer, got {workers!r}")
    return cfg


# ---------------- CLI ----------------
@click.command("punch")
def punch_clock_main():
    """Run the fixed shift on a punch clock."""
    clock = PunchClock()
    run_shift(clock)
    click.echo(clock.report())


@click.command("stamp")
def stamping_clock_main():
    """Run the fixed shift on a stamping clock."""
    clock = StampingClock()
    run_shift(clock)
    click.echo(clock.report())


@click.group()
def cli():
    """clockctl - shared hour clock"""
    pass


cli.add_command(punch_clock_main)
cli.add_command(stamping_clock_main)


@cli.command()
@click.argument("hours", nargs=-1, type=click.IntRange(min=0))
@click.option("--variant", type=click.Choice(sorted(VARIANTS)), default=None, help="Clock variant")
@click.option("--workers", type=click.IntRange(min=1), default=None, help="Number of recorders")
@click.option("--concurrent", is_flag=True, help="Run each recorder on its own thread")
@click.option("--verbose", "-v", is_flag=True, help="Echo every recorded quantity")
def tally(hours, variant, workers, concurrent, verbose):
    """Record HOURS across recorders sharing one clock and print the total."""
    try:
        cfg = load_config()
        # Flags replace stored values before validation.
        if variant is not None:
            cfg["variant"] = variant
        if workers is not None:
            cfg["workers"] = workers
        validate_config(cfg)
    except ConfigError as e:
        click.echo(f"Invalid config: {e}", err=True)
        raise SystemExit(1)
    clock = make_clock(cfg["variant"])
    workers = cfg["workers"]

    on_record = None
    if verbose:
        def on_record(index, h):
            click.echo(f"worker-{index} recorded {h}", err=True)

    if concurrent:
        record_concurrently(clock, list(hours), workers, on_record=on_record)
    else:
        run_shift(clock, distribute(hours, workers), recorders=workers, on_record=on_record)
    click.echo(clock.report())


def _load_config_or_exit():
    try:
        return load_config()
    except ConfigError as e:
        click.echo(f"Invalid config: {e}", err=True)
        raise SystemExit(1)


@cli.group()
def config():
    """Configuration management"""
    pass


@config.command("set")
@click.argument("key")
@click.argument("value")
def config_set(key, value):
    cfg = _load_config_or_exit()
    if key not in cfg:
        click.echo(f"Unknown config key: {key}. Known keys: {list(cfg.keys())}", err=True)
        raise SystemExit(1)
    try:
        v = int(value)
    except ValueError:
        v = value
    cfg[key] = v
    try:
        validate_config(cfg)
    except ConfigError as e:
        click.echo(f"Invalid value for {key}: {e}", err=True)
        raise SystemExit(1)
    save_config(cfg)
    click.echo(f"Updated {key} = {v}")


@config.command("show")
def config_show():
    click.echo(json.dumps(_load_config_or_exit(), indent=2))


if __name__ == "__main__":
    cli()
