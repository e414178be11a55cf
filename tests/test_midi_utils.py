import fractions

import pytest

import sequenza.events
import sequenza.midi_utils
import sequenza.pattern


def messages (midi) -> list:

	"""Channel and meta messages of the only track, as (type, note, time) tuples."""

	return [(message.type, getattr(message, "note", None), message.time) for message in midi.tracks[0]]


def test_duration_to_ticks () -> None:

	assert sequenza.midi_utils.duration_to_ticks(fractions.Fraction(1, 4)) == 480
	assert sequenza.midi_utils.duration_to_ticks(fractions.Fraction(1, 8)) == 240
	assert sequenza.midi_utils.duration_to_ticks(fractions.Fraction(1)) == 1920
	assert sequenza.midi_utils.duration_to_ticks(fractions.Fraction(1, 4), ticks_per_beat=96) == 96


@pytest.mark.parametrize("cents, value", [
	(0.0, 0),
	(200.0, 8191),
	(-200.0, -8191),
	(1000.0, 8191),
	(-1000.0, -8192),
])
def test_bend_to_pitchwheel (cents: float, value: int) -> None:

	assert sequenza.midi_utils.bend_to_pitchwheel(cents) == value


def test_notes_in_order () -> None:

	midi = sequenza.midi_utils.to_midi_file(sequenza.pattern.pattern("0 2"))

	assert midi.type == 0
	assert midi.ticks_per_beat == 480
	assert messages(midi) == [
		("set_tempo", None, 0),
		("note_on", 60, 0),
		("note_off", 60, 480),
		("note_on", 64, 0),
		("note_off", 64, 480),
		("end_of_track", None, 0),
	]


def test_rest_delays_the_next_note () -> None:

	midi = sequenza.midi_utils.to_midi_file(sequenza.pattern.pattern("0 r 2"))

	assert ("note_on", 64, 480) in messages(midi)


def test_chord_sounds_together () -> None:

	midi = sequenza.midi_utils.to_midi_file(sequenza.pattern.pattern("024"))

	assert messages(midi)[1:7] == [
		("note_on", 60, 0),
		("note_on", 64, 0),
		("note_on", 67, 0),
		("note_off", 60, 480),
		("note_off", 64, 0),
		("note_off", 67, 0),
	]


def test_sound_map () -> None:

	"""Mapped sounds play their note; unmapped ones only take up time."""

	midi = sequenza.midi_utils.to_midi_file(sequenza.pattern.pattern("kick r hh"), sound_map={"kick": 36})

	assert messages(midi)[1:] == [
		("note_on", 36, 0),
		("note_off", 36, 480),
		("end_of_track", None, 960),
	]


def test_bend_becomes_pitchwheel () -> None:

	events = [sequenza.events.Pitch(pitch=None, note=62, duration=fractions.Fraction(1, 4), bend=-50.0)]

	midi = sequenza.midi_utils.to_midi_file(events)
	wheel = [message.pitch for message in midi.tracks[0] if message.type == "pitchwheel"]

	assert wheel == [sequenza.midi_utils.bend_to_pitchwheel(-50.0), 0]


def test_notes_outside_midi_range_are_silent () -> None:

	events = [sequenza.events.Pitch(pitch=None, note=130, duration=fractions.Fraction(1, 4))]

	midi = sequenza.midi_utils.to_midi_file(events)

	assert messages(midi)[1:] == [("end_of_track", None, 480)]


def test_tempo () -> None:

	midi = sequenza.midi_utils.to_midi_file(sequenza.pattern.pattern("0"), bpm=90)

	assert midi.tracks[0][0].tempo == 666667
