import argparse
import logging
import typing

import sequenza.chords
import sequenza.events
import sequenza.options
import sequenza.pattern_cache
import sequenza.tonnetz


# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


CYCLES = {
	"hexatonic": "hexa_cycle",
	"octatonic": "octa_cycle",
	"ennea": "ennea_cycle",
}


def build_parser () -> argparse.ArgumentParser:

	parser = argparse.ArgumentParser(prog="sequenza", description="Evaluate a numeric pattern and print its events.")

	parser.add_argument("text", help="Pattern notation, e.g. \"q 0 [2 4] e024 r\"")
	parser.add_argument("--config", default="config.yaml", help="YAML file with 'pattern' and 'cache' sections")
	parser.add_argument("--key", help="Key name, e.g. D or Bb")
	parser.add_argument("--scale", help="Scale name or Scala text")
	parser.add_argument("--octave", type=int, help="Octave of degree 0")
	parser.add_argument("--retrograde", action="store_true", help="Reverse the pattern")
	parser.add_argument("--tonnetz", metavar="OPS", help="Tonnetz operators applied to every chord, e.g. plr")
	parser.add_argument("--cycle", choices=sorted(CYCLES), help="Replace every pitch with a chord cycle")
	parser.add_argument("--lead", action="store_true", help="Voice-lead consecutive chords")
	parser.add_argument("--midi", metavar="FILE", help="Also write a MIDI file")

	return parser


def describe (event: sequenza.events.Event) -> str:

	"""
	One printable line per event.
	"""

	duration = event.duration

	if isinstance(event, sequenza.events.Pitch):
		return f"{duration}\tnote {event.note} ({sequenza.chords.PC_TO_NOTE_NAME[event.note % 12]}{event.octave})"

	if isinstance(event, sequenza.events.Chord):
		chord = sequenza.chords.Chord.identify(event.pitch_classes())
		name = f" {chord.name()}" if chord is not None else ""
		return f"{duration}\tchord {event.notes()}{name}"

	if isinstance(event, sequenza.events.SoundEvent):
		return f"{duration}\tsound {event.name}"

	return f"{duration}\trest"


def main (argv: typing.Optional[typing.Sequence[str]] = None) -> int:

	"""
	Main entry point for the sequenza command line.
	"""

	args = build_parser().parse_args(argv)

	config = sequenza.options.load_config(args.config)
	cache_config = config.get('cache') or {}

	options = sequenza.options.options_from_config(config)

	overrides = {name: getattr(args, name) for name in ("key", "scale", "octave") if getattr(args, name) is not None}

	if args.retrograde:
		overrides["retrograde"] = True

	options = options.overlay(**overrides)

	cache = sequenza.pattern_cache.PatternCache(
		capacity = cache_config.get('capacity', 128),
		ttl = cache_config.get('ttl', 300.0),
	)

	# Transform a copy so the cached pattern stays as written.
	p = cache.get_or_compute(args.text, options).clone()

	if p.is_empty():
		logger.error(f"Nothing to play: {p.error}")
		return 1

	try:

		if args.cycle:
			getattr(p, CYCLES[args.cycle])()

		if args.tonnetz:
			p.tonnetz(args.tonnetz)

	except sequenza.tonnetz.TonnetzError as exc:
		logger.error(f"Cannot transform {args.text!r}: {exc}")
		return 2

	if args.lead:
		p.lead()

	for event in p:
		print(describe(event))

	logger.info(f"{len(p)} events, total duration {p.duration}")

	if args.midi:
		p.to_midi(args.midi)

	return 0


if __name__ == "__main__":
	raise SystemExit(main())
