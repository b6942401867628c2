import argparse
import logging
import os
import sys

from .motion_analysis import ExerciseType, UserLevel


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Motion Coach - real-time movement quality analysis")
    parser.add_argument('--mode', type=str, choices=['camera', 'video'], default='camera',
                        help='Run mode: camera (default) or video')
    parser.add_argument('--video', type=str, help='Path to the video file to analyze (required if mode=video)')
    parser.add_argument('--exercise', type=str, default='squat', choices=[e.value for e in ExerciseType],
                        help='Exercise type (default: squat)')
    parser.add_argument('--user_level', type=str, default=None, choices=[level.value for level in UserLevel],
                        help='User level (beginner/intermediate/advanced)')
    parser.add_argument('--camera', type=int, default=0, help='Camera device ID')
    parser.add_argument('--no_voice', action='store_true', help='Disable spoken feedback')
    parser.add_argument('--log_level', type=str, default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'], help='Logging level')
    return parser


def main(argv=None) -> int:
    """Main entry point for Motion Coach."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(level=args.log_level, format='%(asctime)s %(levelname)s %(message)s')
    analyzer_logger = logging.getLogger("MotionQualityAnalyzer")
    analyzer_logger.setLevel(args.log_level)
    analyzer_logger.propagate = False  # has its own handler
    logger = logging.getLogger(__name__)

    if args.mode == 'video':
        if not args.video:
            logger.error("--video argument is required when mode is 'video'.")
            return 1
        if not os.path.isfile(args.video):
            logger.error(f"Video file not found: {args.video}")
            return 1

    # Camera stack is only needed here
    from .coach import MotionCoach

    try:
        coach = MotionCoach(exercise_type=args.exercise, user_level=args.user_level,
                            enable_voice=not args.no_voice)
        if args.mode == 'video':
            summary = coach.run_video(args.video)
        else:
            summary = coach.start(camera_id=args.camera)
    except Exception as e:
        logger.exception(f"Error running motion coach: {e}")
        return 1

    logger.info(f"Processed {summary.frame_count} frames, {summary.total_reps} reps, "
                f"average form score {summary.average_form_score:.1f}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
