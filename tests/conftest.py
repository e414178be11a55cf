import pytest


class FakeClock:

	"""Manually advanced time source for cache expiry tests."""

	def __init__ (self, now: float = 0.0) -> None:

		self.now = now

	def __call__ (self) -> float:

		return self.now

	def advance (self, seconds: float) -> None:

		"""Move time forward."""

		self.now += seconds


@pytest.fixture
def clock () -> FakeClock:

	return FakeClock()


@pytest.fixture
def missing_config (tmp_path) -> str:

	"""Path to a config file that does not exist."""

	return str(tmp_path / "missing.yaml")
