#!/usr/bin/env python3
"""
Safe Jobs - Job Search Safety & Proximity Engine

Main entry point. Wires the job store, search, verification and AI safety
analysis together behind a small command-line interface.
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional

import yaml

from safejobs.config import Config, load_config, generate_example_config
from safejobs.database import Coordinate, JobStore
from safejobs.geofence import ProximityFilter, ScoredJobRecord
from safejobs.llm_utils import LLMClient
from safejobs.places import LocationService
from safejobs.recommender import CATEGORY_PHRASES, JobRecommender
from safejobs.scorer import SafetyScorer
from safejobs.search import JobSearch
from safejobs.speech import SpeechClient
from safejobs.submission import JobPostingService, SubmissionResult
from safejobs.verifier import JobSubmission


# Configure logging
def setup_logging(verbose: bool = False, log_file: Optional[str] = None):
    """Configure logging for the application."""
    level = logging.DEBUG if verbose else logging.INFO

    handlers = [logging.StreamHandler(sys.stdout)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )

    # Reduce noise from external libraries
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('httpcore').setLevel(logging.WARNING)
    logging.getLogger('geopy').setLevel(logging.WARNING)


logger = logging.getLogger(__name__)


def parse_coordinate(value: str) -> Coordinate:
    """Parse "LAT,LON" into a Coordinate (argparse type)."""
    try:
        lat_str, lon_str = value.split(",")
        return Coordinate(float(lat_str), float(lon_str))
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"expected LAT,LON, got '{value}': {e}")


def format_job_line(job: ScoredJobRecord) -> str:
    parts = [f"{job.title} @ {job.company}", job.location]
    if job.pay:
        parts.append(job.pay)
    if job.safety_score:
        parts.append(job.safety_score.value)
    if job.display_distance is not None:
        parts.append(f"{job.display_distance} km away")
    return " | ".join(parts)


class SafeJobsApp:
    """
    Application container for Safe Jobs.

    Owns the store and service adapters for a single CLI invocation.
    """

    def __init__(self, config: Config):
        """
        Initialize the application.

        Args:
            config: Application configuration.
        """
        self.config = config

        self.store = JobStore(config.database.db_path)
        self.llm_client = LLMClient(config.llm)
        self.locations = LocationService(config.google)
        self.search_service = JobSearch(
            self.store,
            llm_client=self.llm_client,
            proximity=ProximityFilter(config.proximity),
        )
        self.scorer = SafetyScorer(self.llm_client)
        self.recommender = JobRecommender(self.llm_client)
        self.speech = SpeechClient(config.google)
        self.poster = JobPostingService(self.store, config.verification)

        logger.info("Safe Jobs initialized")

    async def nearby(self, reference: Coordinate, radius_km: Optional[float]) -> list[ScoredJobRecord]:
        """List jobs near a coordinate."""
        jobs = self.store.get_all_jobs()
        return self.search_service.proximity.nearby(jobs, reference, radius_km)

    async def search(
        self,
        query: str,
        reference: Optional[Coordinate],
        radius_km: Optional[float],
    ) -> list[ScoredJobRecord]:
        """Run a natural-language search."""
        return await self.search_service.search(query, reference=reference, radius_km=radius_km)

    async def analyze(self, job_id: str) -> Optional[dict]:
        """
        Show a job with its AI safety analysis.

        Returns:
            Dictionary for display, or None if the job doesn't exist.
        """
        job = self.store.get_job(job_id)
        if job is None:
            return None

        analysis = await self.scorer.analyze_job_safety(job.description)
        return {
            "job": job,
            "analysis": analysis,
            "reports": len(self.store.get_reports(job_id)),
        }

    async def post(self, path: str) -> SubmissionResult:
        """
        Post a job described in a YAML file.

        The file holds title, company, location, pay and description, and
        optionally latitude/longitude. Without coordinates the location text
        is geocoded when a Maps key is configured.
        """
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
            if not isinstance(data, dict):
                raise ValueError("expected a mapping of job fields")
            submission = JobSubmission.from_dict(data)
            coordinates = Coordinate.from_dict(data)
        except (OSError, yaml.YAMLError, ValueError, TypeError) as e:
            logger.error(f"Could not read job file {path}: {e}")
            return SubmissionResult(success=False, message=f"Invalid job file: {path}")

        if coordinates is None and submission.location:
            geocoded = await self.locations.geocode(submission.location)
            if geocoded.coordinates:
                coordinates = geocoded.coordinates
                logger.info(f"Location set: {geocoded.formatted_address}")
            else:
                logger.info("Location not found; posting without coordinates")

        return await self.poster.submit(submission, coordinates)

    async def voice_search(
        self,
        audio_path: str,
        reference: Optional[Coordinate],
        radius_km: Optional[float],
        language: Optional[str] = None,
    ) -> tuple[str, list[ScoredJobRecord]]:
        """
        Transcribe a recorded query and search with it.

        Returns:
            The query used and the results; an empty query and no results
            when the audio can't be read or nothing was recognised.
        """
        try:
            with open(audio_path, "rb") as f:
                audio = f.read()
        except OSError as e:
            logger.error(f"Could not read audio file {audio_path}: {e}")
            return "", []

        transcript = await self.speech.transcribe(audio, language=language)
        if not transcript:
            logger.warning("No speech recognised in recording")
            return "", []

        return await self.search_service.voice_search(
            transcript, reference=reference, radius_km=radius_km
        )

    async def recommend(self, category: str) -> list[ScoredJobRecord]:
        """Pick the most suitable jobs for a category."""
        jobs = self.store.get_all_jobs()
        picked = await self.recommender.general_recommendations(jobs, category)
        return [ScoredJobRecord.from_job(job, None) for job in picked]

    def report(self, job_id: str, reason: str) -> Optional[str]:
        """File a report against a job."""
        if self.store.get_job(job_id) is None:
            logger.error(f"Job not found: {job_id}")
            return None
        return self.poster.report_job(job_id, reason)

    def print_stats(self) -> None:
        """Print database statistics."""
        stats = self.store.get_stats()

        print("\n" + "=" * 40)
        print("SAFE JOBS DATABASE STATISTICS")
        print("=" * 40)
        print(f"Total jobs: {stats['total_jobs']}")
        print(f"Verified jobs: {stats['verified_jobs']}")
        print(f"Jobs with coordinates: {stats['jobs_with_coordinates']}")
        print(f"Reports filed: {stats['total_reports']}")

        print("\nJobs by safety tier:")
        for tier, count in stats.get('by_safety_tier', {}).items():
            print(f"  {tier}: {count}")

        print("=" * 40 + "\n")

    async def close(self) -> None:
        """Clean up resources."""
        await self.llm_client.close()
        await self.locations.close()
        await self.speech.close()


def print_results(title: str, jobs: list[ScoredJobRecord]) -> None:
    print("\n" + "=" * 60)
    print(f"{title}: {len(jobs)} jobs")
    print("=" * 60)
    for job in jobs:
        print(f"[{job.id}] {format_job_line(job)}")
    print()


async def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Safe Jobs - Job Search Safety & Proximity Engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --nearby 12.97,77.59 --radius 25   Jobs within 25 km
  %(prog)s --search "farm work near Mysore"    Natural-language search
  %(prog)s --voice query.webm --language tamil  Voice search from a recording
  %(prog)s --recommend --category safety       Recommended jobs
  %(prog)s --analyze JOB_ID                     AI safety analysis of a job
  %(prog)s --post job.yaml                      Verify and post a job
  %(prog)s --report JOB_ID                      Report a suspicious job
  %(prog)s --stats                              Show database statistics
  %(prog)s --init-config                        Generate example config file
        """
    )

    parser.add_argument(
        '-c', '--config',
        default='config.yaml',
        help='Path to configuration file (default: config.yaml)'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )

    parser.add_argument(
        '--log-file',
        help='Write logs to file'
    )

    parser.add_argument(
        '--nearby',
        type=parse_coordinate,
        metavar='LAT,LON',
        help='List jobs near a coordinate (also used as the reference for --search)'
    )

    parser.add_argument(
        '--radius',
        type=float,
        help='Search radius in km (default from config)'
    )

    parser.add_argument(
        '--search',
        metavar='QUERY',
        help='Search jobs with a natural-language query'
    )

    parser.add_argument(
        '--voice',
        metavar='AUDIO_FILE',
        help='Search jobs with a recorded voice query (WEBM_OPUS by default)'
    )

    parser.add_argument(
        '--language',
        help='Spoken language for --voice: english, tamil, swahili, telugu, malayalam'
    )

    parser.add_argument(
        '--recommend',
        action='store_true',
        help='Show recommended jobs'
    )

    parser.add_argument(
        '--category',
        choices=sorted(CATEGORY_PHRASES),
        default='popular',
        help='Recommendation category for --recommend (default: popular)'
    )

    parser.add_argument(
        '--analyze',
        metavar='JOB_ID',
        help='Show a job with its AI safety analysis'
    )

    parser.add_argument(
        '--post',
        metavar='FILE',
        help='Verify and post the job described in a YAML file'
    )

    parser.add_argument(
        '--report',
        metavar='JOB_ID',
        help='Report a job as suspicious'
    )

    parser.add_argument(
        '--reason',
        default='Suspicious job posting',
        help='Reason given with --report'
    )

    parser.add_argument(
        '--stats',
        action='store_true',
        help='Show database statistics'
    )

    parser.add_argument(
        '--init-config',
        action='store_true',
        help='Generate example configuration file'
    )

    args = parser.parse_args()

    # Set up logging
    setup_logging(verbose=args.verbose, log_file=args.log_file)

    # Handle init-config separately
    if args.init_config:
        generate_example_config()
        return

    # Load configuration
    try:
        config = load_config(args.config)
        logger.info(f"Loaded configuration from: {args.config}")
    except FileNotFoundError as e:
        logger.error(str(e))
        logger.info("Run with --init-config to generate an example configuration file")
        sys.exit(1)
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    app = SafeJobsApp(config)

    try:
        if args.stats:
            app.print_stats()
            return

        if args.report:
            report_id = app.report(args.report, args.reason)
            if report_id:
                print("Thank you for reporting this job. We will investigate.")
            else:
                sys.exit(1)
            return

        if args.post:
            result = await app.post(args.post)
            print(result.message)
            if result.success:
                print(f"Job ID: {result.job_id} ({result.safety_tier.value})")
            else:
                sys.exit(1)
            return

        if args.analyze:
            details = await app.analyze(args.analyze)
            if details is None:
                print("Job not found")
                sys.exit(1)
            job = details["job"]
            analysis = details["analysis"]
            print("\n" + "=" * 60)
            print(f"{job.title} @ {job.company}")
            print(f"Location: {job.location}")
            print(f"Pay: {job.pay or 'Not specified'}")
            if job.safety_score:
                print(f"Risk tier: {job.safety_score.value}")
            print(f"AI safety score: {analysis.safety_score}/10")
            for note in analysis.safety_notes:
                print(f"  - {note}")
            if details["reports"]:
                print(f"Reports filed: {details['reports']}")
            print("=" * 60 + "\n")
            return

        if args.voice:
            query, results = await app.voice_search(
                args.voice, args.nearby, args.radius, language=args.language
            )
            if not query:
                print("Could not understand the recording")
                sys.exit(1)
            print_results(f"Results for '{query}'", results)
            return

        if args.recommend:
            results = await app.recommend(args.category)
            print_results(f"Recommended ({args.category})", results)
            return

        if args.search is not None:
            results = await app.search(args.search, args.nearby, args.radius)
            print_results(f"Results for '{args.search}'", results)
            return

        if args.nearby:
            results = await app.nearby(args.nearby, args.radius)
            print_results("Jobs near you", results)
            return

        parser.print_help()

    finally:
        await app.close()


def run():
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
