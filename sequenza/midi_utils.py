"""Render pattern events to a Standard MIDI File.

One track is written: a tempo meta message, then note on/off pairs in event
order. Chords sound all their tones together, rests advance time, cents
bends become pitch wheel messages (assuming the default +/-2 semitone bend
range), and named sounds are looked up in ``sound_map``.
"""

import fractions
import logging
import typing

import mido

import sequenza.events


logger = logging.getLogger(__name__)


PITCHWHEEL_RANGE_CENTS = 200.0
PITCHWHEEL_MAX = 8191


def duration_to_ticks (duration: fractions.Fraction, ticks_per_beat: int = 480) -> int:

	"""Convert a whole-note based duration to MIDI ticks (a beat is a quarter note)."""

	return int(round(fractions.Fraction(duration) * 4 * ticks_per_beat))


def bend_to_pitchwheel (cents: float) -> int:

	"""Map a bend in cents to a pitch wheel value (-8192..8191)."""

	value = int(round(cents / PITCHWHEEL_RANGE_CENTS * PITCHWHEEL_MAX))

	return max(-8192, min(PITCHWHEEL_MAX, value))


def _sounding (event: sequenza.events.Event, sound_map: typing.Mapping[str, int]) -> typing.List[typing.Tuple[int, float]]:

	"""Return ``(note, bend)`` for every tone the event sounds."""

	if isinstance(event, sequenza.events.Pitch):
		return [(event.note, event.bend)]

	if isinstance(event, sequenza.events.Chord):
		return [(pitch.note, pitch.bend) for pitch in event.pitches]

	if isinstance(event, sequenza.events.SoundEvent):

		if event.name in sound_map:
			return [(sound_map[event.name], 0.0)]

		logger.debug(f"No MIDI note mapped for sound {event.name!r}, leaving it silent")

	return []


def to_midi_file (
	pattern: typing.Iterable[sequenza.events.Event],
	bpm: float = 120,
	channel: int = 0,
	velocity: int = 100,
	sound_map: typing.Optional[typing.Mapping[str, int]] = None,
	ticks_per_beat: int = 480,
) -> mido.MidiFile:

	"""Build a ``mido.MidiFile`` from a pattern (or any iterable of events).

	Parameters:
		pattern: A ``Pattern`` or a list of events.
		bpm: Tempo written to the file.
		channel: MIDI channel (0-15).
		velocity: Note-on velocity for every note.
		sound_map: Maps sound names (``"kick"``) to MIDI notes.
		ticks_per_beat: File resolution.

	Example:
		```python
		midi = to_midi_file(pattern("q 0 2 4 r"), bpm=90)
		midi.save("phrase.mid")
		```
	"""

	sound_map = sound_map or {}

	mid = mido.MidiFile(type=0)
	mid.ticks_per_beat = ticks_per_beat

	track = mido.MidiTrack()
	mid.tracks.append(track)

	track.append(mido.MetaMessage('set_tempo', tempo=mido.bpm2tempo(bpm), time=0))

	# Delta time owed to the next message (rests and silent sounds add to it).
	pending = 0

	for event in pattern:

		length = duration_to_ticks(event.duration, ticks_per_beat)
		tones = [(note, bend) for note, bend in _sounding(event, sound_map) if 0 <= note <= 127]

		if not tones:
			pending += length
			continue

		# A MIDI channel has one pitch wheel: the first bent tone sets it.
		bends = [bend for _, bend in tones if bend]

		if bends:
			track.append(mido.Message('pitchwheel', channel=channel, pitch=bend_to_pitchwheel(bends[0]), time=pending))
			pending = 0

		for i, (note, _) in enumerate(tones):
			track.append(mido.Message('note_on', channel=channel, note=note, velocity=velocity, time=pending if i == 0 else 0))

		pending = 0

		for i, (note, _) in enumerate(tones):
			track.append(mido.Message('note_off', channel=channel, note=note, velocity=0, time=length if i == 0 else 0))

		if bends:
			track.append(mido.Message('pitchwheel', channel=channel, pitch=0, time=0))

	track.append(mido.MetaMessage('end_of_track', time=pending))

	return mid
