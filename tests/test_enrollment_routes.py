from app.models.database_models import Course


def _url(course_id):
    return f'/api/courses/{course_id}/enrollment'


def test_enroll_in_published_course(client, login, add_row, users):
    course_id = add_row(Course, title='Algebra I', author_id=users['teacher_a'], is_published=True)
    login('student')

    status = client.get(_url(course_id)).get_json()
    assert status['is_enrolled'] is False
    assert status['enrollment'] is None

    response = client.post(_url(course_id))
    assert response.status_code == 201
    enrollment = response.get_json()['enrollment']
    assert enrollment['course_id'] == course_id
    assert enrollment['user_id'] == users['student']
    assert enrollment['status'] == 'in_progress'

    assert client.get(_url(course_id)).get_json()['is_enrolled'] is True
    # A second enrollment is rejected
    assert client.post(_url(course_id)).status_code == 400


def test_hidden_courses_cannot_be_joined(client, login, logout, add_row, users):
    pending_id = add_row(Course, title='Draft', author_id=users['teacher_a'])
    members_id = add_row(Course, title='Members', author_id=users['teacher_a'], is_published=True)

    login('student')
    assert client.post(_url(pending_id)).status_code == 404
    assert client.get(_url(pending_id)).status_code == 404
    assert client.post(_url(9999)).status_code == 404

    logout()
    assert client.post(_url(members_id)).status_code == 401


def test_unenroll(client, login, add_row, users):
    course_id = add_row(Course, title='Algebra I', author_id=users['teacher_a'], is_published=True)
    login('student')
    assert client.delete(_url(course_id)).status_code == 404

    client.post(_url(course_id))
    response = client.delete(_url(course_id))
    assert response.status_code == 200
    assert response.get_json()['is_enrolled'] is False
    assert client.get(_url(course_id)).get_json()['is_enrolled'] is False


def test_student_dashboard_lists_enrolled_courses(client, login, add_row, users):
    algebra = add_row(Course, title='Algebra I', author_id=users['teacher_a'], is_published=True)
    add_row(Course, title='Botany', author_id=users['teacher_a'], is_published=True)
    login('student')
    client.post(_url(algebra))

    data = client.get('/dashboard/student').get_json()
    assert [c['title'] for c in data['enrolled_courses']] == ['Algebra I']
    assert [c['title'] for c in data['available_courses']] == ['Botany']

    # Enrollments are per user
    login('student_b')
    data = client.get('/dashboard/student').get_json()
    assert data['enrolled_courses'] == []


def test_unpublished_course_drops_off_the_dashboard(client, login, add_row, users):
    course_id = add_row(Course, title='Algebra I', author_id=users['teacher_a'], is_published=True)
    login('student')
    client.post(_url(course_id))

    login('admin')
    assert client.post(f'/api/courses/{course_id}/unapprove').status_code == 200

    login('student')
    data = client.get('/dashboard/student').get_json()
    assert data['enrolled_courses'] == []
    assert client.get(_url(course_id)).status_code == 404
    # Leaving still works once the course is hidden
    assert client.delete(_url(course_id)).status_code == 200
