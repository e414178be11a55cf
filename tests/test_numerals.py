import itertools

import sequenza.numerals


def test_pull_until_exhausted () -> None:

	stream = sequenza.numerals.NumeralStream([31, 41])

	assert stream.pull() == 31
	assert stream.pull() == 41
	assert stream.exhausted is False

	assert stream.pull() is None
	assert stream.exhausted is True
	assert stream.pull() is None


def test_pull_converts_to_int () -> None:

	stream = sequenza.numerals.NumeralStream([3.0])

	value = stream.pull()

	assert value == 3
	assert isinstance(value, int)


def test_infinite_source () -> None:

	stream = sequenza.numerals.NumeralStream(itertools.count(7))

	assert [stream.pull() for _ in range(3)] == [7, 8, 9]


def test_split_streams_advance_separately () -> None:

	"""A split stream sees the same remaining values without consuming the original's."""

	stream = sequenza.numerals.NumeralStream(iter([1, 2, 3]))
	stream.pull()

	copied = stream.split()

	assert stream.pull() == 2
	assert copied.pull() == 2
	assert copied.pull() == 3
	assert stream.pull() == 3
	assert copied.pull() is None


def test_split_keeps_exhaustion () -> None:

	stream = sequenza.numerals.NumeralStream([])
	stream.pull()

	assert stream.split().exhausted is True


def test_numeral_to_text () -> None:

	assert sequenza.numerals.numeral_to_text(3141) == "3 1 4 1"
	assert sequenza.numerals.numeral_to_text(-12) == "-1 -2"
	assert sequenza.numerals.numeral_to_text(0) == "0"


def test_as_stream () -> None:

	stream = sequenza.numerals.NumeralStream([1])

	assert sequenza.numerals.as_stream(None) is None
	assert sequenza.numerals.as_stream(stream) is stream
	assert sequenza.numerals.as_stream([5]).pull() == 5
