"""Numeric streams that rewrite a pattern at each loop boundary.

A ``NumeralStream`` wraps any iterable of integers (a generator, a list,
``itertools.count()``). A pattern holding one pulls a single value each time
its loop closes and replaces its text with that number's digits.
"""

import itertools
import logging
import typing


logger = logging.getLogger(__name__)


class NumeralStream:

	"""Pull-based wrapper around an iterable of integers.

	``pull()`` never blocks on an empty stream: once the source is used up it
	returns ``None`` on every call and ``exhausted`` becomes ``True``.

	Example:
		```python
		stream = NumeralStream([31, 41])
		stream.pull()   # 31
		stream.pull()   # 41
		stream.pull()   # None
		```
	"""

	def __init__ (self, source: typing.Iterable[int]) -> None:

		self._iterator: typing.Iterator[int] = iter(source)
		self.exhausted = False

	def pull (self) -> typing.Optional[int]:

		"""Return the next numeral, or ``None`` once the source is used up."""

		if self.exhausted:
			return None

		try:
			value = next(self._iterator)
		except StopIteration:
			self.exhausted = True
			logger.debug("Numeral stream exhausted")
			return None

		return int(value)

	def split (self) -> "NumeralStream":

		"""Return an independent stream that yields the same remaining values.

		Both streams advance separately afterwards, so a cloned pattern does not
		steal numerals from its original.
		"""

		mine, theirs = itertools.tee(self._iterator)
		self._iterator = mine

		copied = NumeralStream(theirs)
		copied.exhausted = self.exhausted

		return copied


def numeral_to_text (numeral: int) -> str:

	"""Render the decimal digits of ``numeral`` as space-separated degrees.

	A negative numeral makes every degree negative.

	Example:
		```python
		numeral_to_text(3141)   # "3 1 4 1"
		numeral_to_text(-12)    # "-1 -2"
		```
	"""

	sign = "-" if numeral < 0 else ""

	return " ".join(f"{sign}{digit}" for digit in str(abs(int(numeral))))


def as_stream (source: typing.Union[None, NumeralStream, typing.Iterable[int]]) -> typing.Optional[NumeralStream]:

	"""Wrap ``source`` in a ``NumeralStream`` unless it already is one."""

	if source is None or isinstance(source, NumeralStream):
		return source

	return NumeralStream(source)
