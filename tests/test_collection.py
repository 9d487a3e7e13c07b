import locale

from app.rbac import can_view
from app.services.content import (
    EntityKind, ManagementListing, comments_on_posts_by, dashboard,
    management_listing, public_listing, sort_by_title
)

from conftest import ADMIN, GUEST, STUDENT, TEACHER_A, TEACHER_B, make_entity


def _courses():
    return [
        make_entity(id=1, title='Geometry', is_published=True, is_guest_viewable=True),
        make_entity(id=2, title='algebra', is_published=True),
        make_entity(id=3, title='Calculus'),
        make_entity(id=4, title='Biology', author_id=TEACHER_B.id),
        make_entity(id=5, title='Art', author_id=TEACHER_B.id, is_published=True),
    ]


def _ids(entities):
    return [e.id for e in entities]


def test_public_listing_keeps_source_order():
    courses = _courses()
    assert _ids(public_listing(courses, GUEST)) == [1]
    assert _ids(public_listing(courses, STUDENT)) == [1, 2, 5]
    assert _ids(public_listing(courses, TEACHER_A)) == [1, 2, 3, 5]
    assert _ids(public_listing(courses, ADMIN)) == [1, 2, 3, 4, 5]


def test_public_listing_never_leaks_to_guests():
    listed = public_listing(_courses(), GUEST)
    assert all(can_view(entity, GUEST) for entity in listed)


def test_management_listing_for_teacher_is_own_content():
    listing = management_listing(_courses(), TEACHER_A)
    assert _ids(listing.pending) == [3]
    assert _ids(listing.approved) == [1, 2]
    assert listing.total == 3


def test_management_listing_for_admin_covers_everything():
    listing = management_listing(_courses(), ADMIN)
    assert listing.pending_count == 2
    assert listing.approved_count == 3


def test_student_manages_only_own_forum_posts():
    posts = [
        make_entity(EntityKind.FORUM_POST, id=1, author_id=STUDENT.id),
        make_entity(EntityKind.FORUM_POST, id=2, author_id=TEACHER_A.id, is_approved=True),
    ]
    listing = management_listing(posts, STUDENT)
    assert _ids(listing.pending) == [1]
    assert listing.approved == []


def test_lessons_follow_course_state_in_management_listing():
    published = make_entity(id=1, is_published=True)
    pending = make_entity(id=2)
    lessons = [
        make_entity(EntityKind.LESSON, id=10, parent=published),
        make_entity(EntityKind.LESSON, id=11, parent=pending),
    ]
    listing = management_listing(lessons, TEACHER_A)
    assert _ids(listing.approved) == [10]
    assert _ids(listing.pending) == [11]


def test_listing_to_dict_limits_items_not_counts():
    listing = management_listing(_courses(), ADMIN)
    data = listing.to_dict(limit=1)
    assert len(data['approved']) == 1
    assert data['approved_count'] == 3
    assert data['total'] == 5
    assert ManagementListing().to_dict() == {
        'pending': [], 'approved': [], 'pending_count': 0, 'approved_count': 0, 'total': 0
    }


def test_comments_on_my_posts():
    mine = make_entity(EntityKind.FORUM_POST, id=1, author_id=TEACHER_A.id, is_approved=True)
    other = make_entity(EntityKind.FORUM_POST, id=2, author_id=STUDENT.id, is_approved=True)
    comments = [
        make_entity(EntityKind.COMMENT, id=20, parent=mine, author_id=STUDENT.id),
        make_entity(EntityKind.COMMENT, id=21, parent=other, author_id=TEACHER_A.id),
        make_entity(EntityKind.COMMENT, id=22, parent=mine, author_id=TEACHER_B.id),
    ]
    assert _ids(comments_on_posts_by(comments, TEACHER_A)) == [20, 22]
    assert comments_on_posts_by(comments, GUEST) == []


def test_dashboard_builds_a_listing_per_kind():
    result = dashboard({
        EntityKind.COURSE: _courses(),
        'conference': [make_entity(EntityKind.CONFERENCE, id=7, author_id=TEACHER_A.id)],
    }, TEACHER_A)
    assert set(result) == {EntityKind.COURSE, EntityKind.CONFERENCE}
    assert result[EntityKind.CONFERENCE].pending_count == 1


def test_sort_by_title_is_case_insensitive_and_stable():
    courses = _courses()
    ordered = sort_by_title(courses)
    assert [e.title for e in ordered] == ['algebra', 'Art', 'Biology', 'Calculus', 'Geometry']
    # Source list is untouched
    assert _ids(courses) == [1, 2, 3, 4, 5]

    twins = [make_entity(id=1, title='Same'), make_entity(id=2, title='Same')]
    assert _ids(sort_by_title(twins)) == [1, 2]


def test_sort_by_title_ignores_accents():
    courses = [
        make_entity(id=1, title='Zoología'),
        make_entity(id=2, title='Álgebra'),
        make_entity(id=3, title='Biología'),
        make_entity(id=4, title='élite'),
        make_entity(id=5, title='Elite'),
    ]
    ordered = sort_by_title(courses)
    assert [e.title for e in ordered] == ['Álgebra', 'Biología', 'Elite', 'élite', 'Zoología']


def test_sort_by_title_leaves_process_locale_alone():
    before = locale.setlocale(locale.LC_COLLATE)
    sort_by_title(_courses())
    assert locale.setlocale(locale.LC_COLLATE) == before


def test_listings_are_opt_in_sorted():
    # public_listing never reorders
    assert _ids(public_listing(_courses(), ADMIN)) == [1, 2, 3, 4, 5]
