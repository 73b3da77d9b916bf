"""Compiled-in seed data used when a durable collection is missing or unreadable."""

from __future__ import annotations

from .models import (
    ChatMessage,
    Collection,
    ExpertProfile,
    Milestone,
    Project,
    ProjectStatus,
    WallPost,
)

SAMPLE_EXPERTS: tuple[ExpertProfile, ...] = (
    ExpertProfile(
        id="expert-1",
        name="Marcus Thorne",
        specialty="Master Electrician",
        category="Electrical",
        rating=4.9,
        review_count=42,
        experience="15 Years",
        location="Downtown, Seattle, Washington, United States",
        city="Seattle",
        region="Washington",
        zip_code="98101",
        avatar="https://picsum.photos/seed/marcus/200/200",
        bio="Residential rewiring, smart home integration and emergency electrical repairs.",
        skills=("Rewiring", "EV Chargers", "Smart Panels", "Safety Inspections"),
        hourly_rate="$85/hr",
    ),
    ExpertProfile(
        id="expert-2",
        name="Sarah Chen",
        specialty="Landscape Architect",
        category="Design",
        rating=4.8,
        review_count=28,
        experience="8 Years",
        location="Bellevue, Washington, United States",
        city="Bellevue",
        region="Washington",
        zip_code="98004",
        avatar="https://picsum.photos/seed/sarah/200/200",
        bio="Sustainable, drought-resistant gardens that look good year-round.",
        skills=("Drought-Resistant Plants", "3D Modeling", "Permaculture", "Hardscaping"),
        hourly_rate="$120/hr",
        availability="Available Next Week",
    ),
    ExpertProfile(
        id="expert-3",
        name="Rajesh Kumar",
        specialty="Civil Engineer",
        category="General",
        rating=4.7,
        review_count=156,
        experience="12 Years",
        location="Mumbai, Maharashtra, India",
        city="Mumbai",
        region="Maharashtra",
        zip_code="400001",
        avatar="https://picsum.photos/seed/rajesh/200/200",
        bio="Structural reinforcement and high-rise residential plumbing systems.",
        skills=("Concrete Pumping", "Structural Load", "Plumbing Codes"),
        hourly_rate="₹4000/hr",
    ),
    ExpertProfile(
        id="expert-4",
        name="Claire Dubois",
        specialty="Master Plumber",
        category="Plumbing",
        rating=4.9,
        review_count=89,
        experience="10 Years",
        location="Paris, Île-de-France, France",
        city="Paris",
        region="Île-de-France",
        zip_code="75001",
        avatar="https://picsum.photos/seed/claire/200/200",
        bio="Heritage building restoration and modern hydraulic systems.",
        skills=("Heritage Pipes", "Leak Detection", "Radiant Heating"),
        hourly_rate="€95/hr",
    ),
    ExpertProfile(
        id="expert-5",
        name="James Wilson",
        specialty="Custom Carpenter",
        category="Carpentry",
        rating=5.0,
        review_count=12,
        experience="20 Years",
        location="London, England, United Kingdom",
        city="London",
        region="England",
        zip_code="SW1A 1AA",
        avatar="https://picsum.photos/seed/james/200/200",
        bio="Bespoke cabinetry and structural timber framing.",
        skills=("Timber Framing", "Cabinetry", "Joinery"),
        hourly_rate="£75/hr",
        availability="Busy",
    ),
)

INITIAL_PROJECTS: tuple[Project, ...] = (
    Project(
        id="proj_1",
        title="Modern Patio Deck",
        status=ProjectStatus.COMPLETED,
        last_updated="Completed",
        summary="Building a 12x12 cedar deck with integrated LED lighting.",
        assigned_pro_id="expert-1",
        assigned_pro_name="Marcus Thorne",
        summaries=(
            Milestone(
                id="s1",
                title="Final Build Report",
                content="Deck construction verified. Electrical integration for LEDs completed safely.",
                date="Oct 2023",
            ),
        ),
    ),
    Project(
        id="proj_2",
        title="Kitchen Backsplash",
        status=ProjectStatus.COMPLETED,
        last_updated="Completed",
        summary="Installed herringbone subway tiles with dark grout.",
        assigned_pro_id="expert-2",
        assigned_pro_name="Sarah Chen",
        summaries=(
            Milestone(
                id="s2",
                title="Aesthetic Verification",
                content="Grout lines checked and sealed.",
                date="Nov 2023",
            ),
        ),
    ),
    Project(
        id="proj_3",
        title="Smart Panel Integration",
        status=ProjectStatus.COMPLETED,
        last_updated="Completed",
        summary="Upgrading main breaker panel to a smart load center for energy monitoring.",
        assigned_pro_id="expert-1",
        assigned_pro_name="Marcus Thorne",
        expert_messages=(
            ChatMessage(
                id="m1",
                role="user",
                text="I just sent over the current panel photos. Is there space for the energy monitors?",
            ),
            ChatMessage(
                id="m2",
                role="expert",
                text="Yes, there is enough rail space. Order the CT clamps today and we install next Tuesday.",
            ),
        ),
        summaries=(
            Milestone(
                id="s3",
                title="Installation Complete",
                content="Smart panel verified and energy monitoring active.",
                date="Dec 2023",
            ),
        ),
    ),
)

SAMPLE_WALL_POSTS: tuple[WallPost, ...] = (
    WallPost(
        id="p1",
        author_name="Marcus Thorne",
        author_avatar="https://picsum.photos/seed/marcus/200/200",
        content="Always label your junction boxes, it saves hours during troubleshooting.",
        image="https://picsum.photos/seed/elec/800/600",
        likes=24,
        timestamp="2h ago",
        tags=("#electrical", "#pro-tip", "#smarthome"),
    ),
    WallPost(
        id="p2",
        author_name="Sarah Chen",
        author_avatar="https://picsum.photos/seed/sarah/200/200",
        content="Recycled glass aggregates make great retaining wall drainage.",
        image="https://picsum.photos/seed/garden/800/600",
        likes=56,
        timestamp="5h ago",
        tags=("#landscaping", "#sustainability"),
    ),
    WallPost(
        id="p3",
        author_name="Leo V.",
        author_avatar="https://picsum.photos/seed/leo/100/100",
        content="Built a sliding spice rack for a client today.",
        image="https://picsum.photos/seed/kitchen/800/600",
        likes=112,
        timestamp="1d ago",
        tags=("#carpentry", "#kitchen-hack"),
    ),
)

DEFAULT_COLLECTIONS: tuple[Collection, ...] = (
    Collection(id="default", name="General Builds"),
)
