"""``flask seed-demo``: load the demo dataset into Firestore."""

from __future__ import annotations

import click
from faker import Faker
from flask import current_app
from flask.cli import with_appcontext

from .applications import ApplicationService, ApplicationSubmission
from .competition import CompetitionService
from .content import AnnouncementService, ProjectService, ProjectStatus, SettingsService
from .store import get_db

DEMO_PROJECTS = (
    (
        "Autonomous Line Following Robot",
        "A robot capable of following a black line on a white surface using "
        "infrared sensors.",
        ProjectStatus.COMPLETED,
    ),
    (
        "Robotic Arm with AI Vision",
        "6-axis robotic arm with computer vision for object recognition and "
        "manipulation.",
        ProjectStatus.IN_PROGRESS,
    ),
    (
        "Maze Solving Robot",
        "Autonomous robot that can navigate and solve complex mazes using "
        "ultrasonic sensors.",
        ProjectStatus.IN_PROGRESS,
    ),
)

DEMO_ROBOTS = (
    ("AlphaBot", "Main competition robot for international robotics challenge.", 5),
    ("BetaDrone", "Aerial robotics platform for drone competition.", 3),
    ("GammaCrawler", "All-terrain exploration robot for rescue missions.", 4),
)

DEMO_ANNOUNCEMENT = "Welcome to the club! Applications are now open for new members."


def seed_demo(db, applicants=0, seed=None):
    """Write the demo dataset. Returns the number of documents created."""
    created = 0
    SettingsService.update_setting(db, "show_apply_btn", True)
    SettingsService.update_setting(db, "show_interview_btn", False)
    SettingsService.update_setting(db, "show_result_btn", False)
    SettingsService.update_setting(db, "video_background_type", "local")
    SettingsService.update_setting(db, "video_background_url", "hero-video.mp4")

    for title, description, status in DEMO_PROJECTS:
        ProjectService.create_project(db, title, description, status)
        created += 1
    for name, description, slots in DEMO_ROBOTS:
        CompetitionService.create_robot(db, name, slots, description)
        created += 1
    AnnouncementService.create_announcement(db, DEMO_ANNOUNCEMENT)
    created += 1

    fake = Faker()
    if seed is not None:
        Faker.seed(seed)
    for _ in range(applicants):
        profile = fake.simple_profile()
        ApplicationService.submit_application(
            db,
            f"demo-{fake.uuid4()}",
            ApplicationSubmission(
                name=profile["name"],
                email=profile["mail"],
                reason=fake.sentence(nb_words=10),
                major=fake.job()[:100],
            ),
        )
        created += 1
    current_app.logger.info(f"Seeded {created} demo documents")
    return created


@click.command("seed-demo")
@click.option("--applicants", default=0, show_default=True, help="Fake applicants.")
@click.option("--seed", type=int, default=None, help="Faker seed.")
@with_appcontext
def seed_demo_command(applicants, seed):
    """Load demo settings, projects, robots and announcements."""
    created = seed_demo(get_db(), applicants=applicants, seed=seed)
    click.echo(f"Created {created} demo documents.")
