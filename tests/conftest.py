"""Shared test fixtures for all frcreview tests."""

from __future__ import annotations

import pytest

from frcreview.api.routers import reviews, webhooks
from frcreview.core.config import Settings
from frcreview.core.models import (
    ChangedFile,
    FileStatus,
    FileSummary,
    Issue,
    PRSummary,
    Severity,
    Skill,
    SkillReference,
)

HEAD_SHA = "b" * 40
PREVIOUS_SHA = "a" * 40

ARM_PATCH = (
    "@@ -9,3 +9,5 @@ public class Arm extends SubsystemBase {\n"
    "-  private double setpoint;\n"
    "   private final CANSparkMax motor;\n"
    "+  public void setVoltage(double volts) {\n"
    "+    motor.setVoltage(volts);\n"
    "+  }\n"
    "   private final Encoder encoder;"
)

# Added lines 10, 11, 12 sit at diff positions 4, 5, 6
ARM_POSITIONS = {10: 4, 11: 5, 12: 6}


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        github_token="ghp_test",
        openai_api_key="sk-test",
        skills_path="",
        workspace_dir=str(tmp_path),
    )


@pytest.fixture
def arm_file() -> ChangedFile:
    return ChangedFile(
        filename="src/main/java/frc/robot/subsystems/Arm.java",
        status=FileStatus.MODIFIED,
        patch=ARM_PATCH,
        additions=3,
        deletions=1,
    )


@pytest.fixture
def readme_file() -> ChangedFile:
    return ChangedFile(
        filename="README.md",
        status=FileStatus.MODIFIED,
        patch="@@ -1,1 +1,2 @@\n # Robot\n+Now with an arm.",
        additions=1,
        deletions=0,
    )


@pytest.fixture
def binary_file() -> ChangedFile:
    return ChangedFile(filename="deploy/logo.png", status=FileStatus.ADDED, patch=None)


@pytest.fixture
def arm_summary() -> PRSummary:
    return PRSummary(
        pr_goal="Add direct voltage control to the arm subsystem.",
        files=[
            FileSummary(
                filename="src/main/java/frc/robot/subsystems/Arm.java",
                summary="Adds setVoltage() to the arm.",
                architecturally_significant=True,
            )
        ],
    )


@pytest.fixture
def sample_issue() -> Issue:
    return Issue(
        file="src/main/java/frc/robot/subsystems/Arm.java",
        line=11,
        severity=Severity.WARNING,
        skill="wpilib",
        reasoning="setVoltage is called without clamping to the battery range.",
        message="Clamp `volts` before calling `motor.setVoltage`.",
    )


@pytest.fixture
def java_skill() -> Skill:
    return Skill(stem="java-style", name="Java Style", applies_to=["*.java"], content="Use final.")


@pytest.fixture
def global_skill() -> Skill:
    return Skill(stem="general", name="General", content="Be nice.")


@pytest.fixture
def skill_with_references() -> Skill:
    return Skill(
        stem="swerve",
        name="Swerve",
        description="Swerve drive rules",
        applies_to=["**/swerve/*.java"],
        content="Swerve index.",
        references=[
            SkillReference(filename="kinematics.md", content="Kinematics rules."),
            SkillReference(filename="odometry.md", content="Odometry rules."),
        ],
    )


@pytest.fixture(autouse=True)
def reset_routers():
    """Routers hold injected services at module level; isolate each test."""
    yield
    reviews._settings = None
    reviews._github_client = None
    reviews._llm_provider = None
    reviews._fast_llm_provider = None
    webhooks._settings = None
