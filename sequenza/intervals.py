"""Scales and degree arithmetic.

Named scales live in ``INTERVAL_DEFINITIONS`` as semitone offsets from the
key. Anything that is not a registered name is read as a Scala tuning
(cents or ratios), so microtonal scales work wherever a name does.

Example:
	```python
	from sequenza.intervals import resolve_scale, pitch_from_degree

	major = resolve_scale("major")
	pitch_from_degree(0, 2, major)       # (64, 0.0, 4) - E4 in C major
	pitch_from_degree(0, 7, major)       # (72, 0.0, 5) - degree 7 wraps to the next octave

	quarter_tones = resolve_scale("150.0 300.0 450.0 600.0 750.0 900.0 1050.0 1200.0")
	pitch_from_degree(0, 1, quarter_tones)   # (62, -50.0, 4)
	```
"""

import dataclasses
import fractions
import math
import typing


class ScalaError(ValueError):
	pass


INTERVAL_DEFINITIONS: typing.Dict[str, typing.List[float]] = {
	"augmented": [0, 3, 4, 7, 8, 11],
	"blues_scale": [0, 3, 5, 6, 7, 10],
	"chromatic": [0, 1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 11],
	"dorian_mode": [0, 2, 3, 5, 7, 9, 10],
	"double_harmonic": [0, 1, 4, 5, 7, 8, 11],
	"enigmatic": [0, 1, 4, 6, 8, 10, 11],
	"harmonic_minor": [0, 2, 3, 5, 7, 8, 11],
	"hungarian_minor": [0, 2, 3, 6, 7, 8, 11],
	"locrian_mode": [0, 1, 3, 5, 6, 8, 10],
	"lydian": [0, 2, 4, 6, 7, 9, 11],
	"lydian_dominant": [0, 2, 4, 6, 7, 9, 10],
	"major_ionian": [0, 2, 4, 5, 7, 9, 11],
	"major_pentatonic": [0, 2, 4, 7, 9],
	"melodic_minor": [0, 2, 3, 5, 7, 9, 11],
	"minor_pentatonic": [0, 3, 5, 7, 10],
	"mixolydian": [0, 2, 4, 5, 7, 9, 10],
	"natural_minor": [0, 2, 3, 5, 7, 8, 10],
	"neapolitan_major": [0, 1, 3, 5, 7, 9, 11],
	"octatonic": [0, 1, 3, 4, 6, 7, 9, 10],
	"phrygian_dominant": [0, 1, 4, 5, 7, 8, 10],
	"phrygian_mode": [0, 1, 3, 5, 7, 8, 10],
	"superlocrian": [0, 1, 3, 4, 6, 8, 10],
	"whole_tone": [0, 2, 4, 6, 8, 10],
}


SCALE_ALIASES: typing.Dict[str, str] = {
	"major": "major_ionian",
	"ionian": "major_ionian",
	"minor": "natural_minor",
	"aeolian": "natural_minor",
	"dorian": "dorian_mode",
	"phrygian": "phrygian_mode",
	"locrian": "locrian_mode",
	"blues": "blues_scale",
}


@dataclasses.dataclass(frozen=True)
class Scale:

	"""
	Pitch offsets (semitones, may be fractional) within one period.
	"""

	name: str
	offsets: typing.Tuple[float, ...]
	period: float = 12.0

	def __len__ (self) -> int:

		return len(self.offsets)


def register_scale (name: str, intervals: typing.Sequence[float]) -> None:

	"""Add a named scale to the registry.

	Parameters:
		name: Name used by ``resolve_scale`` and the ``scale`` option.
		intervals: Semitone offsets from the key, starting at 0.

	Raises:
		ValueError: If the offsets do not start at 0 or do not ascend
			within one octave.
	"""

	values = [float(i) for i in intervals]

	if not values or values[0] != 0:
		raise ValueError(f"Scale {name!r} must start at 0, got {list(intervals)!r}")

	if any(b <= a for a, b in zip(values, values[1:])) or values[-1] >= 12:
		raise ValueError(f"Scale {name!r} must ascend within one octave, got {list(intervals)!r}")

	INTERVAL_DEFINITIONS[name] = list(intervals)


def is_scale_name (name: str) -> bool:

	"""True if ``name`` is a registered scale or alias."""

	return SCALE_ALIASES.get(name, name) in INTERVAL_DEFINITIONS


def get_intervals (name: str) -> typing.List[float]:

	"""
	Return a named interval list from the registry.
	"""

	key = SCALE_ALIASES.get(name, name)

	if key not in INTERVAL_DEFINITIONS:
		raise ValueError(f"Unknown scale: {name}")

	return list(INTERVAL_DEFINITIONS[key])


def resolve_scale (scale: typing.Union[str, Scale, typing.Sequence[float]]) -> Scale:

	"""Turn a scale name, a Scala string or a list of offsets into a ``Scale``.

	Parameters:
		scale: A registered name (``"major"``, ``"dorian"``...), the text of a
			Scala file or a bare list of Scala pitches, a ``Scale``, or a
			sequence of semitone offsets.

	Raises:
		ScalaError: The string is neither a known name nor valid Scala.
	"""

	if isinstance(scale, Scale):
		return scale

	if isinstance(scale, str):

		if is_scale_name(scale):
			return Scale(name=scale, offsets=tuple(float(i) for i in get_intervals(scale)))

		return parse_scala(scale)

	offsets = tuple(float(i) for i in scale)

	if not offsets:
		raise ScalaError("A scale needs at least one offset")

	return Scale(name="custom", offsets=offsets)


def parse_scala (text: str) -> Scale:

	"""Parse Scala tuning data into a ``Scale``.

	Lines starting with ``!`` are comments. A full ``.scl`` body starts with a
	description line followed by the note count; a bare list of pitches is
	accepted too. Pitches containing ``.`` are cents, others are ratios
	(``3/2``, ``2``). The last pitch is the period (usually ``2/1``).

	Example:
		```python
		parse_scala("100.0 200.0 300.0 1200.0").offsets   # (0.0, 1.0, 2.0, 3.0)
		```
	"""

	lines = [line.strip() for line in text.splitlines() if line.strip() and not line.strip().startswith("!")]

	if not lines:
		raise ScalaError("Empty Scala data")

	name = "scala"
	values = lines

	if len(lines) >= 2 and lines[1].split()[0].isdigit() and not _is_pitch(lines[0]):
		name = lines[0]
		count = int(lines[1].split()[0])
		values = [line.split()[0] for line in lines[2:2 + count]]

		if len(values) != count:
			raise ScalaError(f"Scala data for {name!r} declares {count} notes but lists {len(values)}")

	else:
		values = " ".join(lines).split()

	semitones = [_scala_pitch(value) for value in values]

	if not semitones:
		raise ScalaError("Scala data lists no pitches")

	period = semitones[-1]

	if period <= 0:
		raise ScalaError(f"Scala period must be positive, got {period}")

	return Scale(name=name, offsets=(0.0,) + tuple(semitones[:-1]), period=period)


def _is_pitch (token: str) -> bool:

	try:
		_scala_pitch(token.split()[0])
	except ScalaError:
		return False

	return True


def _scala_pitch (token: str) -> float:

	"""Convert one Scala pitch (cents or ratio) to semitones."""

	try:

		if "." in token:
			return float(token) / 100.0

		ratio = fractions.Fraction(token)

	except (ValueError, ZeroDivisionError) as exc:
		raise ScalaError(f"Invalid Scala pitch {token!r}") from exc

	if ratio <= 0:
		raise ScalaError(f"Scala ratio must be positive, got {token!r}")

	return 12.0 * math.log2(ratio)


def pitch_from_degree (key_pc: int, degree: int, scale: Scale, octave: int = 4) -> typing.Tuple[int, float, int]:

	"""Map a scale degree to a MIDI note.

	Degrees beyond the scale length wrap into higher octaves; negative degrees
	descend. Fractional (microtonal) results are rounded to the nearest MIDI
	note and the remainder is returned in cents.

	Parameters:
		key_pc: Pitch class of the key (0 = C).
		degree: Zero-based scale degree.
		scale: Resolved ``Scale``.
		octave: Octave of degree 0 (4 puts C at MIDI 60).

	Returns:
		``(note, cents_bend, octave)`` where ``octave`` includes the wrap.
	"""

	octave_shift, index = divmod(degree, len(scale.offsets))

	value = 12 * (octave + 1) + key_pc + scale.offsets[index] + octave_shift * scale.period
	note = math.floor(value + 0.5)
	bend = round((value - note) * 100.0, 6)

	return note, bend, octave + octave_shift


def degree_of_pitch_class (key_pc: int, pitch_class: int, scale: Scale) -> typing.Optional[int]:

	"""Return the degree whose pitch class matches, or ``None`` if the pitch class is outside the scale."""

	for degree, offset in enumerate(scale.offsets):
		if offset == int(offset) and (key_pc + int(offset)) % 12 == pitch_class % 12:
			return degree

	return None
