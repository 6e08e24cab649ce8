"""
Tests for projects and milestones
"""
from datetime import date, timedelta

from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from backend.core.exceptions import NotFound, ValidationError
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.projects.models import Project, Milestone
from backend.projects.services import ProjectService, MilestoneService
from backend.tasks.models import Task


class ProjectServiceTests(TestCase):
    """Project lifecycle, scoped to the owning user"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.service = ProjectService()

    def _data(self, **overrides):
        data = {
            'name': 'Kitchen remodel',
            'client_name': 'Olena',
            'start_date': '2025-03-01',
            'estimated_end_date': '2025-05-01',
        }
        data.update(overrides)
        return data

    def test_create_project(self):
        """New projects start in planning with parsed dates"""
        project = self.service.create_project(self.user, self._data())
        self.assertEqual(project.status, Project.STATUS_PLANNING)
        self.assertEqual(project.start_date, date(2025, 3, 1))
        self.assertEqual(project.owner, self.user)

    def test_create_missing_fields(self):
        """Missing required fields are listed in the error"""
        with self.assertRaises(ValidationError) as ctx:
            self.service.create_project(self.user, {'name': 'Bath'})
        self.assertEqual(ctx.exception.message, 'Missing required fields: client_name, start_date, estimated_end_date')

    def test_end_date_before_start(self):
        """The estimated end date cannot precede the start date"""
        with self.assertRaises(ValidationError) as ctx:
            self.service.create_project(self.user, self._data(estimated_end_date='2025-02-01'))
        self.assertEqual(ctx.exception.message, 'Estimated end date must be after start date')

    def test_invalid_status(self):
        """Unknown statuses are rejected"""
        with self.assertRaises(ValidationError):
            self.service.create_project(self.user, self._data(status='done'))

    def test_other_owner_is_not_found(self):
        """Projects owned by someone else look missing"""
        project = TestDataFactory.create_project(TestDataFactory.create_user())
        with self.assertRaises(NotFound) as ctx:
            self.service.get_project(project.id, self.user)
        self.assertEqual(ctx.exception.message, 'Project not found')

    def test_list_filters_by_status(self):
        """Status filters accept a comma-separated list"""
        active = TestDataFactory.create_project(self.user, status=Project.STATUS_ACTIVE)
        on_hold = TestDataFactory.create_project(self.user, status=Project.STATUS_ON_HOLD)
        TestDataFactory.create_project(self.user, status=Project.STATUS_COMPLETED)

        projects = self.service.list_projects(self.user, {'status': 'active,on_hold'})
        self.assertEqual({p.id for p in projects}, {active.id, on_hold.id})

        with self.assertRaises(ValidationError) as ctx:
            self.service.list_projects(self.user, {'status': 'active,bogus'})
        self.assertEqual(ctx.exception.message, 'Invalid status values: bogus')

    def test_list_filters_by_date_range(self):
        """Start date ranges narrow the list"""
        early = TestDataFactory.create_project(self.user, start_date=date(2025, 1, 10))
        TestDataFactory.create_project(self.user, start_date=date(2025, 6, 10))
        projects = self.service.list_projects(self.user, {'start_date_to': '2025-02-01'})
        self.assertEqual([p.id for p in projects], [early.id])

    def test_search_and_active(self):
        """Search matches name or client; active excludes completed and archived"""
        kitchen = TestDataFactory.create_project(self.user, name='Kitchen')
        archived = TestDataFactory.create_project(self.user, name='Attic', status=Project.STATUS_ARCHIVED)
        self.assertEqual([p.id for p in self.service.search_projects(self.user, 'kitch')], [kitchen.id])
        self.assertEqual([p.id for p in self.service.search_projects(self.user, 'client attic')], [archived.id])
        self.assertNotIn(archived.id, {p.id for p in self.service.get_active_projects(self.user)})

    def test_update_and_archive(self):
        """Updates apply field by field and archiving sets the status"""
        project = TestDataFactory.create_project(self.user)
        project = self.service.update_project(project.id, self.user, {'description': 'Two rooms'})
        self.assertEqual(project.description, 'Two rooms')
        with self.assertRaises(ValidationError):
            self.service.update_project(project.id, self.user, {'name': ''})

        project = self.service.archive_project(project.id, self.user)
        self.assertEqual(project.status, Project.STATUS_ARCHIVED)

    def test_delete_cascades(self):
        """Deleting a project removes its milestones and tasks"""
        project = TestDataFactory.create_project(self.user)
        TestDataFactory.create_milestone(project)
        TestDataFactory.create_task(project)
        self.service.delete_project(project.id, self.user)
        self.assertFalse(Milestone.objects.filter(project_id=project.id).exists())
        self.assertFalse(Task.objects.filter(project_id=project.id).exists())


class MilestoneServiceTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.project = TestDataFactory.create_project(self.user)
        self.service = MilestoneService()

    def test_create_requires_name_and_date(self):
        """Milestones need a name and a target date"""
        with self.assertRaises(ValidationError) as ctx:
            self.service.create_milestone(self.project.id, {'name': 'Rough-in'})
        self.assertEqual(ctx.exception.message, 'Missing required fields: name, target_date')

    def test_create_completed_sets_completed_date(self):
        """Milestones created as completed get today's date"""
        milestone = self.service.create_milestone(self.project.id, {
            'name': 'Demolition', 'target_date': '2025-03-10', 'status': 'completed',
        })
        self.assertEqual(milestone.completed_date, timezone.localdate())

    def test_progress(self):
        """Progress is the rounded share of completed milestones"""
        self.assertEqual(self.service.calculate_progress(self.project.id), 0)
        TestDataFactory.create_milestone(self.project, status=Milestone.STATUS_COMPLETED)
        TestDataFactory.create_milestone(self.project)
        TestDataFactory.create_milestone(self.project)
        self.assertEqual(self.service.calculate_progress(self.project.id), 33)

    def test_timeline(self):
        """The timeline spans the first to the last target date"""
        first = TestDataFactory.create_milestone(self.project, target_date=date(2025, 3, 1))
        last = TestDataFactory.create_milestone(self.project, target_date=date(2025, 6, 1), status=Milestone.STATUS_COMPLETED)
        timeline = self.service.get_timeline(self.project.id)
        self.assertEqual([m.id for m in timeline['milestones']], [first.id, last.id])
        self.assertEqual(timeline['start_date'], date(2025, 3, 1))
        self.assertEqual(timeline['end_date'], date(2025, 6, 1))
        self.assertEqual(timeline['progress'], 50)

    def test_empty_timeline(self):
        """A project without milestones has an empty timeline"""
        timeline = self.service.get_timeline(self.project.id)
        self.assertEqual(timeline['milestones'], [])
        self.assertEqual(timeline['progress'], 0)

    def test_overdue_milestones(self):
        """Past-due milestones that are not completed are overdue"""
        today = timezone.localdate()
        late = TestDataFactory.create_milestone(self.project, target_date=today - timedelta(days=3))
        TestDataFactory.create_milestone(self.project, target_date=today - timedelta(days=3), status=Milestone.STATUS_COMPLETED)
        TestDataFactory.create_milestone(self.project, target_date=today + timedelta(days=3))
        self.assertEqual([m.id for m in self.service.check_overdue_milestones(self.project.id)], [late.id])

    def test_milestone_task_progress(self):
        """Milestone progress counts its completed tasks"""
        milestone = TestDataFactory.create_milestone(self.project)
        TestDataFactory.create_task(self.project, milestone=milestone, status=Task.STATUS_COMPLETED)
        TestDataFactory.create_task(self.project, milestone=milestone)
        self.assertEqual(self.service.calculate_milestone_progress(milestone.id), 50)

    def test_complete_milestone(self):
        """Completing a milestone stamps today's date"""
        milestone = TestDataFactory.create_milestone(self.project)
        milestone = self.service.complete_milestone(milestone.id, owner=self.user)
        self.assertEqual(milestone.status, Milestone.STATUS_COMPLETED)
        self.assertEqual(milestone.completed_date, timezone.localdate())

    def test_milestone_of_other_owner(self):
        """Milestones of other users' projects are not found"""
        milestone = TestDataFactory.create_milestone(self.project)
        with self.assertRaises(NotFound):
            self.service.get_milestone(milestone.id, owner=TestDataFactory.create_user())


class ProjectAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_project(self):
        """POST creates a project owned by the current user"""
        response = self.client.post('/api/v1/projects/', {
            'name': 'Bathroom', 'client_name': 'Taras',
            'start_date': '2025-04-01', 'estimated_end_date': '2025-04-30',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'planning')
        self.assertEqual(response.data['owner'], self.user.id)

    def test_create_project_with_bad_dates(self):
        """An end date before the start date returns 400"""
        response = self.client.post('/api/v1/projects/', {
            'name': 'Bathroom', 'client_name': 'Taras',
            'start_date': '2025-04-30', 'estimated_end_date': '2025-04-01',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_only_own_projects(self):
        """The list contains only the user's projects"""
        mine = TestDataFactory.create_project(self.user)
        TestDataFactory.create_project(TestDataFactory.create_user())
        response = self.client.get('/api/v1/projects/')
        self.assertEqual([p['id'] for p in response.data], [str(mine.id)])

    def test_invalid_status_filter(self):
        """Unknown status filters return 400"""
        response = self.client.get('/api/v1/projects/', {'status': 'nope'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Invalid status values: nope')

    def test_search_requires_query(self):
        """Search without a query returns 400"""
        response = self.client.get('/api/v1/projects/search/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Search query is required')

    def test_other_users_project_is_not_found(self):
        """Projects of other users return 404"""
        project = TestDataFactory.create_project(TestDataFactory.create_user())
        response = self.client.get(f'/api/v1/projects/{project.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'Project not found')

    def test_patch_and_archive(self):
        """PATCH changes the status and archive sets it to archived"""
        project = TestDataFactory.create_project(self.user)
        response = self.client.patch(f'/api/v1/projects/{project.id}/', {'status': 'active'}, format='json')
        self.assertEqual(response.data['status'], 'active')
        response = self.client.post(f'/api/v1/projects/{project.id}/archive/')
        self.assertEqual(response.data['status'], 'archived')

    def test_milestone_endpoints(self):
        """Milestones are created, listed on the timeline and completed"""
        project = TestDataFactory.create_project(self.user)
        response = self.client.post(f'/api/v1/projects/{project.id}/milestones/', {
            'name': 'Tiling', 'target_date': '2025-05-01',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        milestone_id = response.data['id']

        response = self.client.get(f'/api/v1/projects/{project.id}/milestones/timeline/')
        self.assertEqual(response.data['progress'], 0)
        self.assertEqual(len(response.data['milestones']), 1)

        response = self.client.post(f'/api/v1/milestones/{milestone_id}/complete/')
        self.assertEqual(response.data['status'], 'completed')

        response = self.client.get(f'/api/v1/milestones/{milestone_id}/')
        self.assertEqual(response.data['progress'], 0)

    def test_milestones_of_foreign_project(self):
        """Milestones of another user's project return 404"""
        project = TestDataFactory.create_project(TestDataFactory.create_user())
        response = self.client.get(f'/api/v1/projects/{project.id}/milestones/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
