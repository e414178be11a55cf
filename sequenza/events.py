"""Events produced by evaluating a pattern.

Every event carries a ``duration`` (a ``Fraction`` where 1 is a whole note)
and answers ``collect(field)`` so a sequence can expose parallel arrays of
pitches, notes, frequencies and durations regardless of event kind.

``Subdivision`` is a provisional marker: it holds the children of one time
slot until ``resolve_subdivisions()`` splits the slot between them.
"""

import dataclasses
import fractions
import typing


Duration = fractions.Fraction


@dataclasses.dataclass
class Pitch:

	"""
	A single sounding note.
	"""

	pitch: typing.Optional[int]
	note: int
	duration: Duration
	octave: int = 4
	bend: float = 0.0

	@property
	def freq (self) -> float:

		"""Frequency in Hz (A4 = 440), including any cents bend."""

		return 440.0 * 2 ** ((self.note + self.bend / 100.0 - 69) / 12)

	@property
	def pitch_class (self) -> int:

		"""Pitch class (0-11) of the MIDI note."""

		return self.note % 12

	def collect (self, field: str) -> typing.Any:

		"""Return a named attribute, or ``None`` if this event has none."""

		return getattr(self, field, None)

	def copy (self) -> "Pitch":

		"""Return an independent copy."""

		return dataclasses.replace(self)


@dataclasses.dataclass
class Chord:

	"""
	Several pitches sounding together for one duration.
	"""

	pitches: typing.List[Pitch]
	duration: Duration

	def collect (self, field: str) -> typing.Any:

		"""Collect ``field`` from each tone; ``duration`` is the chord's own."""

		if field == "duration":
			return self.duration

		return [pitch.collect(field) for pitch in self.pitches]

	def notes (self) -> typing.List[int]:

		"""MIDI notes of the chord tones in order."""

		return [pitch.note for pitch in self.pitches]

	def pitch_classes (self) -> typing.List[int]:

		"""Pitch classes of the chord tones in order."""

		return [pitch.pitch_class for pitch in self.pitches]

	def copy (self) -> "Chord":

		"""Return an independent copy, tones included."""

		return Chord(pitches=[pitch.copy() for pitch in self.pitches], duration=self.duration)

	def __len__ (self) -> int:

		return len(self.pitches)


@dataclasses.dataclass
class Rest:

	"""
	Silence for one duration.
	"""

	duration: Duration

	def collect (self, field: str) -> typing.Any:

		if field == "duration":
			return self.duration

		return None

	def copy (self) -> "Rest":

		return dataclasses.replace(self)


@dataclasses.dataclass
class SoundEvent:

	"""
	A named, unpitched event such as a drum hit (``"kick"``, ``"hh"``).
	"""

	name: str
	duration: Duration

	def collect (self, field: str) -> typing.Any:

		if field in ("name", "duration"):
			return getattr(self, field)

		return None

	def copy (self) -> "SoundEvent":

		return dataclasses.replace(self)


Event = typing.Union[Pitch, Chord, Rest, SoundEvent]


@dataclasses.dataclass
class Subdivision:

	"""
	Children sharing one time slot of ``duration``.
	"""

	children: typing.List[typing.Union[Event, "Subdivision"]]
	duration: Duration

	def copy (self) -> "Subdivision":

		return Subdivision(children=[child.copy() for child in self.children], duration=self.duration)


def with_duration (event: Event, duration: Duration) -> Event:

	"""Return a copy of ``event`` lasting ``duration``."""

	if isinstance(event, Chord):
		copied = event.copy()
		copied.duration = duration
		return copied

	return dataclasses.replace(event, duration=duration)


def resolve_subdivisions (events: typing.Sequence[typing.Union[Event, Subdivision]]) -> typing.List[Event]:

	"""Flatten subdivisions into plain events.

	A subdivision of duration ``D`` with ``k`` children gives each child
	``D / k``, recursing into nested subdivisions. Fractions keep the
	flattened total exactly equal to the slot durations. A list that is
	already flat comes back unchanged.

	Example:
		```python
		group = Subdivision([a, b], duration=Fraction(1, 4))
		resolve_subdivisions([group])  # a and b, each 1/8 long
		```
	"""

	resolved: typing.List[Event] = []

	for event in events:

		if isinstance(event, Subdivision):

			if not event.children:
				continue

			share = Duration(event.duration) / len(event.children)
			children = [_assign(child, share) for child in event.children]
			resolved.extend(resolve_subdivisions(children))

		else:
			resolved.append(event)

	return resolved


def _assign (child: typing.Union[Event, Subdivision], duration: Duration) -> typing.Union[Event, Subdivision]:

	if isinstance(child, Subdivision):
		return Subdivision(children=child.children, duration=duration)

	return with_duration(child, duration)


def flatten (items: typing.Any) -> typing.List[typing.Union[Event, Subdivision]]:

	"""Flatten arbitrarily nested lists of events, dropping ``None``."""

	if items is None:
		return []

	if isinstance(items, (list, tuple)):
		flat: typing.List[typing.Union[Event, Subdivision]] = []
		for item in items:
			flat.extend(flatten(item))
		return flat

	return [items]


def total_duration (events: typing.Iterable[Event]) -> Duration:

	"""Sum of event durations."""

	return sum((Duration(event.duration) for event in events), Duration(0))
