"""Chord inversions and voice leading.

Provides functions for rotating chords into different inversions and for
choosing the smoothest voicing between consecutive chords. Voice leading
minimises the total semitone movement so that chord pads sound connected
rather than jumping around the keyboard.

Example:
	```python
	from sequenza.voicings import invert_chord, lead

	invert_chord([0, 4, 7], inversion=1)   # [0, 3, 8]
	lead([60, 64, 67], [65, 69, 72])       # [60, 65, 69] - F major, closest to C major
	```
"""

import typing


def invert_chord (intervals: typing.List[int], inversion: int) -> typing.List[int]:

	"""Rotate chord intervals to produce an inversion.

	Inversion 0 is root position. Inversion 1 raises the bottom note by an
	octave (first inversion). Wraps around for inversions >= the number of
	notes.

	Parameters:
		intervals: Chord intervals in semitones from root (e.g., ``[0, 4, 7]``)
		inversion: Which inversion to produce (0 = root position)

	Returns:
		New interval list re-zeroed so the caller can add any root

	Example:
		```python
		invert_chord([0, 4, 7], 0)  # [0, 4, 7]  - root position
		invert_chord([0, 4, 7], 1)  # [0, 3, 8]  - first inversion
		invert_chord([0, 4, 7], 2)  # [0, 5, 9]  - second inversion
		```
	"""

	n = len(intervals)

	if n == 0:
		return []

	inversion = inversion % n

	if inversion == 0:
		return list(intervals)

	rotated = intervals[inversion:] + [i + 12 for i in intervals[:inversion]]
	base = rotated[0]

	return [i - base for i in rotated]


def invert_notes (notes: typing.List[int], inversion: int) -> typing.List[int]:

	"""Invert absolute notes in place of their register.

	A positive inversion moves the lowest tone up an octave once per step; a
	negative one moves the highest tone down an octave. Unlike
	``invert_chord`` the notes keep their register instead of being re-zeroed.

	Example:
		```python
		invert_notes([60, 64, 67], 1)    # [64, 67, 72]
		invert_notes([60, 64, 67], -1)   # [55, 60, 64]
		```
	"""

	voiced = sorted(notes)

	if not voiced:
		return []

	for _ in range(abs(inversion)):

		if inversion > 0:
			voiced = voiced[1:] + [voiced[0] + 12]
		else:
			voiced = [voiced[-1] - 12] + voiced[:-1]

	return voiced


def _movement (candidate: typing.List[int], previous: typing.List[int]) -> int:

	if len(candidate) == len(previous):
		return sum(abs(a - b) for a, b in zip(candidate, previous))

	# Different sizes: each new tone is charged its distance to the nearest old one.
	return sum(min(abs(note - other) for other in previous) for note in candidate)


def lead (from_notes: typing.Sequence[int], to_notes: typing.Sequence[int]) -> typing.List[int]:

	"""Revoice ``to_notes`` to move as little as possible from ``from_notes``.

	Tries every inversion of ``to_notes`` with its bass in each octave around
	the previous bass and keeps the one with the smallest total semitone
	movement. Pitch classes and chord size are preserved; ties keep the
	earliest candidate (lowest inversion, lowest octave).

	Parameters:
		from_notes: MIDI notes of the previous chord.
		to_notes: MIDI notes of the chord to revoice.

	Returns:
		MIDI notes for the best voicing, ascending.
	"""

	previous = sorted(from_notes)
	target = sorted(to_notes)

	if not previous or not target:
		return list(target)

	intervals = [note - target[0] for note in target]

	best_voicing: typing.Optional[typing.List[int]] = None
	best_cost = float("inf")

	for inv in range(len(intervals)):

		shape = invert_chord(intervals, inv)
		bass_pc = (target[0] + intervals[inv]) % 12

		for bass in range(previous[0] - 12, previous[0] + 13):

			if bass % 12 != bass_pc:
				continue

			candidate = [bass + i for i in shape]
			cost = _movement(candidate, previous)

			if cost < best_cost:
				best_cost = cost
				best_voicing = candidate

	assert best_voicing is not None
	return best_voicing


class VoiceLeadingState:

	"""Track the previous voicing across chord changes.

	Example:
		```python
		state = VoiceLeadingState()
		state.next([60, 64, 67])   # [60, 64, 67] - nothing to lead from
		state.next([65, 69, 72])   # [60, 65, 69]
		```
	"""

	def __init__ (self) -> None:

		"""Start with no previous voicing."""

		self.previous_voicing: typing.Optional[typing.List[int]] = None

	def next (self, notes: typing.Sequence[int]) -> typing.List[int]:

		"""Choose the smoothest voicing of ``notes`` and remember it."""

		if self.previous_voicing is None:
			result = list(notes)
		else:
			result = lead(self.previous_voicing, notes)

		self.previous_voicing = result

		return result
