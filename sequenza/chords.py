"""Chord definitions and pitch class utilities.

This module provides chord quality definitions, pitch class mappings, and the
``ChordBuilder`` that turns pitch classes into sounding chords.

Module-level constants:
- `NOTE_NAME_TO_PC`: Maps note names (e.g., `"C"`, `"F#"`, `"Bb"`) to pitch classes (0-11)
- `PC_TO_NOTE_NAME`: Maps pitch classes to note names
- `CHORD_INTERVALS`: Maps chord quality names to interval lists (semitones from root)
- `CHORD_SUFFIX`: Maps chord quality names to human-readable suffixes (e.g., `"m"`, `"7"`)

Module-level helpers:
- `key_name_to_pc(key_name)`: Validate a key name and return its pitch class (0–11).
  Raises `ValueError` for unknown names.
"""

import dataclasses
import typing

import sequenza.events
import sequenza.intervals


NOTE_NAME_TO_PC: typing.Dict[str, int] = {
	"C": 0,
	"C#": 1,
	"Db": 1,
	"D": 2,
	"D#": 3,
	"Eb": 3,
	"E": 4,
	"F": 5,
	"F#": 6,
	"Gb": 6,
	"G": 7,
	"G#": 8,
	"Ab": 8,
	"A": 9,
	"A#": 10,
	"Bb": 10,
	"B": 11,
}

PC_TO_NOTE_NAME: typing.List[str] = [
	"C",
	"C#",
	"D",
	"D#",
	"E",
	"F",
	"F#",
	"G",
	"G#",
	"A",
	"A#",
	"B",
]


def key_name_to_pc (key_name: str) -> int:

	"""Validate a key name and return its pitch class (0–11).

	Parameters:
		key_name: Note name (e.g. ``"C"``, ``"F#"``, ``"Bb"``).

	Returns:
		Pitch class integer (0–11).

	Raises:
		ValueError: If the key name is not recognised.

	Example:
		```python
		key_name_to_pc("C")   # → 0
		key_name_to_pc("F#")  # → 6
		key_name_to_pc("Bb")  # → 10
		```
	"""

	if key_name not in NOTE_NAME_TO_PC:
		raise ValueError(
			f"Unknown key name: {key_name!r}. Expected e.g. 'C', 'F#', 'Bb'."
		)

	return NOTE_NAME_TO_PC[key_name]


CHORD_INTERVALS: typing.Dict[str, typing.List[int]] = {
	"major": [0, 4, 7],
	"minor": [0, 3, 7],
	"diminished": [0, 3, 6],
	"augmented": [0, 4, 8],
	"dominant_7th": [0, 4, 7, 10],
	"major_7th": [0, 4, 7, 11],
	"minor_7th": [0, 3, 7, 10],
	"half_diminished_7th": [0, 3, 6, 10],
	"sus2": [0, 2, 7],
	"sus4": [0, 5, 7],
}

CHORD_SUFFIX: typing.Dict[str, str] = {
	"major": "",
	"minor": "m",
	"diminished": "dim",
	"augmented": "+",
	"dominant_7th": "7",
	"major_7th": "maj7",
	"minor_7th": "m7",
	"half_diminished_7th": "m7b5",
	"sus2": "sus2",
	"sus4": "sus4",
}


@dataclasses.dataclass(frozen=True)
class Chord:

	"""
	Represents a chord as a root pitch class and quality.
	"""

	root_pc: int
	quality: str

	@classmethod
	def identify (cls, pitch_classes: typing.Sequence[int]) -> typing.Optional["Chord"]:

		"""Name a chord read from its first tone as root, or ``None`` if the shape is unknown."""

		if not pitch_classes:
			return None

		root = pitch_classes[0] % 12
		shape = sorted({(pc - root) % 12 for pc in pitch_classes})

		for quality, intervals in CHORD_INTERVALS.items():
			if shape == intervals:
				return cls(root_pc=root, quality=quality)

		return None

	def name (self) -> str:

		"""
		Return a human-friendly chord name.
		"""

		root_name = PC_TO_NOTE_NAME[self.root_pc % 12]
		suffix = CHORD_SUFFIX.get(self.quality, "")

		return f"{root_name}{suffix}"


class ChordBuilder:

	"""Realize pitch classes as sounding chords in a key and scale.

	Each pitch class is placed in the octave that starts at ``base_note``;
	tones whose pitch class lies in the scale keep their scale degree in
	``pitch``.

	Example:
		```python
		builder = ChordBuilder(key_pc=0, scale=resolve_scale("major"))
		builder.from_pitch_classes([5, 9, 0], base_note=60, duration=Fraction(1, 4)).notes()
		# [65, 69, 60]
		```
	"""

	def __init__ (self, key_pc: int, scale: sequenza.intervals.Scale) -> None:

		self.key_pc = key_pc
		self.scale = scale

	def pitch (self, note: int, duration: sequenza.events.Duration) -> sequenza.events.Pitch:

		"""Wrap one MIDI note as a ``Pitch`` event."""

		return sequenza.events.Pitch(
			pitch = sequenza.intervals.degree_of_pitch_class(self.key_pc, note % 12, self.scale),
			note = note,
			duration = duration,
			octave = note // 12 - 1,
		)

	def from_pitch_classes (self, pitch_classes: typing.Sequence[int], base_note: int, duration: sequenza.events.Duration) -> sequenza.events.Chord:

		"""Place each pitch class at ``base_note`` + pc and return the chord.

		Parameters:
			pitch_classes: Tones in the order they should appear.
			base_note: MIDI note of the octave start (a multiple of 12).
			duration: Duration of the resulting chord.
		"""

		notes = [base_note + (pc % 12) for pc in pitch_classes]

		return self.from_notes(notes, duration)

	def stacked (self, pitch_classes: typing.Sequence[int], bass_note: int, duration: sequenza.events.Duration) -> sequenza.events.Chord:

		"""Voice pitch classes upward from the octave of ``bass_note``, keeping their order.

		The first pitch class sounds in the octave starting at
		``octave_base(bass_note)``; each later one is the nearest note above
		the tone before it.

		Example:
			```python
			builder.stacked([3, 7, 0], 64, Fraction(1, 4)).notes()   # [63, 67, 72]
			```
		"""

		notes: typing.List[int] = []

		for pc in pitch_classes:

			if not notes:
				notes.append(octave_base(bass_note) + pc % 12)
				continue

			gap = (pc - notes[-1]) % 12
			notes.append(notes[-1] + (gap or 12))

		return self.from_notes(notes, duration)

	def from_notes (self, notes: typing.Sequence[int], duration: sequenza.events.Duration) -> sequenza.events.Chord:

		"""Wrap absolute MIDI notes as a chord."""

		return sequenza.events.Chord(
			pitches = [self.pitch(note, duration) for note in notes],
			duration = duration,
		)


def octave_base (note: int) -> int:

	"""Return the C at or below ``note`` (e.g. 60 for 60-71)."""

	return 12 * (note // 12)
