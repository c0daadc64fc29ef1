# show-engine/main.py

import argparse
import time
import sys
import logging
import json

def setup_logging(log_level_str='INFO'):
    """Set up logging with specified level"""
    log_level = getattr(logging, log_level_str.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    return logging.getLogger(__name__)

def build_arg_parser():
    parser = argparse.ArgumentParser(description="Show Engine - quantized cue playback for authored show bundles")
    parser.add_argument("bundle_path", type=str,
                        help="Path to the exported show bundle JSON (e.g., bundles/show.json or an absolute path).")
    parser.add_argument("--section", type=str, default=None,
                        help="Section to activate and queue (default: first section of the timeline)")
    parser.add_argument("--bpm", type=float, default=None,
                        help="Tempo to run the show at (default: DEFAULT_BPM from config)")
    parser.add_argument("--grid", type=str, default=None,
                        help="Default quantize grid for the session, e.g. 1/4n or 1/8n")
    parser.add_argument("--duration", type=float, default=60.0,
                        help="Maximum seconds to wait for queued cues to release (default: 60). 0 for no limit.")
    parser.add_argument("--log-level",
                       choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                       default='INFO',
                       help='Set logging level (default: INFO)')
    parser.add_argument("--verbose", "-v", action='store_true',
                       help='Enable verbose debug logging (same as --log-level DEBUG)')
    parser.add_argument("--quiet", "-q", action='store_true',
                       help='Only show errors and warnings (same as --log-level WARNING)')
    return parser

def run_show_engine(argv=None):
    """
    Load a bundle, queue a section's cues and release them on the beat grid.

    Returns:
        Process exit code: 0 on success, 1 if the bundle or an argument was rejected
    """
    args = build_arg_parser().parse_args(argv)

    # Determine log level based on arguments
    if args.quiet:
        log_level = 'WARNING'
    elif args.verbose:
        log_level = 'DEBUG'
    else:
        log_level = args.log_level

    logger = setup_logging(log_level)

    import config as app_config
    from show_engine import ShowSession

    logger.info(f"Show Engine starting with log level: {log_level}")

    bundle_path = app_config.resolve_bundle_path(args.bundle_path)
    logger.info(f"Bundle: {bundle_path}")

    try:
        with open(bundle_path, 'r') as f:
            bundle_data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Could not read bundle '{bundle_path}': {e}")
        return 1

    session = ShowSession(app_config_module=app_config)

    setup_commands = [('import_bundle', {'bundle': bundle_data})]
    if args.section is not None:
        setup_commands.append(('activate_section', {'section': args.section}))
    if args.bpm is not None:
        setup_commands.append(('set_bpm', {'bpm': args.bpm}))
    if args.grid is not None:
        setup_commands.append(('set_quantization', {'grid': args.grid}))
    setup_commands.append(('resync_downbeat', {}))
    setup_commands.append(('queue_section_markers', {}))

    for command, kwargs in setup_commands:
        result = session.dispatch(command, **kwargs)
        if not result.success:
            logger.error(f"{command} failed: {result.error_message}")
            return 1

    tempo = session.get_tempo_state()
    pending = len(session.list_scheduled_actions())
    logger.info(f"Queued {pending} cues at {tempo.bpm:.1f} BPM. Press Ctrl+C to exit early.")

    poll_interval = app_config.RELEASE_POLL_INTERVAL_MS / 1000.0
    wait_start_time = time.time()
    released_count = 0

    try:
        while True:
            for action in session.pop_due_actions():
                released_count += 1
                logger.info(f"Cue {action.id}: {action.action} "
                            f"(section {action.section}, {action.quantize.value}) at {action.execute_at_ms}")

            if not session.list_scheduled_actions():
                logger.info(f"All {released_count} cues released")
                break

            if args.duration > 0 and (time.time() - wait_start_time) > args.duration:
                remaining = len(session.list_scheduled_actions())
                logger.warning(f"Duration of {args.duration}s reached with {remaining} cues still pending")
                break

            time.sleep(poll_interval)
    except KeyboardInterrupt:
        logger.info("KeyboardInterrupt received. Stopping playback.")

    logger.debug(f"Final session stats: {session.get_stats()}")
    logger.info("Show Engine finished.")
    return 0

if __name__ == "__main__":
    sys.exit(run_show_engine())
