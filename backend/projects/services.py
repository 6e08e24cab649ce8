"""
Project and milestone services.

Projects are always looked up through their owner; a project that belongs
to someone else is reported as missing.
"""
import logging

from django.db.models import Q
from django.utils import timezone

from backend.core.exceptions import NotFound, ValidationError
from backend.core.utils import apply_filters, parse_date, parse_list
from .filters import ProjectFilter
from .models import Project, Milestone

logger = logging.getLogger(__name__)

PROJECT_REQUIRED_FIELDS = ['name', 'client_name', 'start_date', 'estimated_end_date']
PROJECT_FIELDS = ['name', 'client_name', 'client_email', 'client_phone', 'description',
                  'start_date', 'estimated_end_date', 'actual_end_date', 'status']
PROJECT_DATE_FIELDS = ['start_date', 'estimated_end_date', 'actual_end_date']

MILESTONE_FIELDS = ['name', 'description', 'target_date', 'completed_date', 'status', 'order_index']


def _validate_status(value, choices, label):
    valid = [choice[0] for choice in choices]
    if value not in valid:
        raise ValidationError(f'Invalid {label}. Must be one of: {", ".join(valid)}')


class ProjectService:

    def create_project(self, owner, data):
        missing = [field for field in PROJECT_REQUIRED_FIELDS if not data.get(field)]
        if missing:
            raise ValidationError(f'Missing required fields: {", ".join(missing)}')

        values = {field: data.get(field) for field in PROJECT_FIELDS if data.get(field) is not None}
        for field in PROJECT_DATE_FIELDS:
            if field in values:
                values[field] = parse_date(values[field], field)
        self._validate_dates(values['start_date'], values['estimated_end_date'])
        if 'status' in values:
            _validate_status(values['status'], Project.STATUS_CHOICES, 'status')

        project = Project.objects.create(owner=owner, **values)
        logger.info(f"Project {project.id} '{project.name}' created by user {owner.id}")
        return project

    def get_project(self, project_id, owner):
        project = Project.objects.filter(id=project_id, owner=owner).first()
        if project is None:
            raise NotFound('Project not found')
        return project

    def list_projects(self, owner, filters=None):
        filters = filters or {}
        valid = [choice[0] for choice in Project.STATUS_CHOICES]
        invalid = [s for s in parse_list(filters.get('status')) if s not in valid]
        if invalid:
            raise ValidationError(f'Invalid status values: {", ".join(invalid)}')

        queryset = Project.objects.filter(owner=owner)
        return apply_filters(ProjectFilter, filters, queryset).order_by('-created_at')

    def update_project(self, project_id, owner, data):
        project = self.get_project(project_id, owner)
        for field in PROJECT_FIELDS:
            if field not in data:
                continue
            value = data[field]
            if field in PROJECT_DATE_FIELDS:
                value = parse_date(value, field)
            if field in PROJECT_REQUIRED_FIELDS and not value:
                raise ValidationError(f'{field} cannot be empty')
            if field == 'status':
                _validate_status(value, Project.STATUS_CHOICES, 'status')
            setattr(project, field, value)

        self._validate_dates(project.start_date, project.estimated_end_date)
        project.save()
        logger.info(f"Project {project.id} updated")
        return project

    def delete_project(self, project_id, owner):
        project = self.get_project(project_id, owner)
        project.delete()
        logger.info(f"Project {project_id} deleted")

    def search_projects(self, owner, term):
        return Project.objects.filter(owner=owner).filter(
            Q(name__icontains=term) | Q(client_name__icontains=term)
        ).order_by('-created_at')

    def archive_project(self, project_id, owner):
        project = self.get_project(project_id, owner)
        project.status = Project.STATUS_ARCHIVED
        project.save(update_fields=['status', 'updated_at'])
        logger.info(f"Project {project.id} archived")
        return project

    def get_active_projects(self, owner):
        return Project.objects.filter(owner=owner, status__in=Project.ACTIVE_STATUSES).order_by('-created_at')

    @staticmethod
    def _validate_dates(start_date, estimated_end_date):
        if start_date and estimated_end_date and estimated_end_date < start_date:
            raise ValidationError('Estimated end date must be after start date')


class MilestoneService:

    def create_milestone(self, project_id, data):
        if not data.get('name') or not data.get('target_date'):
            raise ValidationError('Missing required fields: name, target_date')

        values = {field: data.get(field) for field in MILESTONE_FIELDS if data.get(field) is not None}
        values['target_date'] = parse_date(values['target_date'], 'target_date')
        if 'completed_date' in values:
            values['completed_date'] = parse_date(values['completed_date'], 'completed_date')
        if 'status' in values:
            _validate_status(values['status'], Milestone.STATUS_CHOICES, 'status')
            if values['status'] == Milestone.STATUS_COMPLETED and not values.get('completed_date'):
                values['completed_date'] = timezone.localdate()

        milestone = Milestone.objects.create(project_id=project_id, **values)
        logger.info(f"Milestone {milestone.id} created for project {project_id}")
        return milestone

    def get_milestone(self, milestone_id, owner=None):
        queryset = Milestone.objects.select_related('project')
        if owner is not None:
            queryset = queryset.filter(project__owner=owner)
        milestone = queryset.filter(id=milestone_id).first()
        if milestone is None:
            raise NotFound('Milestone not found')
        return milestone

    def list_milestones(self, project_id):
        return Milestone.objects.filter(project_id=project_id).order_by('target_date', 'order_index')

    def update_milestone(self, milestone_id, data, owner=None):
        milestone = self.get_milestone(milestone_id, owner)
        for field in MILESTONE_FIELDS:
            if field not in data:
                continue
            value = data[field]
            if field in ('target_date', 'completed_date'):
                value = parse_date(value, field)
            if field in ('name', 'target_date') and not value:
                raise ValidationError(f'{field} cannot be empty')
            if field == 'status':
                _validate_status(value, Milestone.STATUS_CHOICES, 'status')
            setattr(milestone, field, value)

        if milestone.status == Milestone.STATUS_COMPLETED and not milestone.completed_date:
            milestone.completed_date = timezone.localdate()
        milestone.save()
        return milestone

    def delete_milestone(self, milestone_id, owner=None):
        milestone = self.get_milestone(milestone_id, owner)
        milestone.delete()
        logger.info(f"Milestone {milestone_id} deleted")

    def complete_milestone(self, milestone_id, owner=None):
        milestone = self.get_milestone(milestone_id, owner)
        milestone.status = Milestone.STATUS_COMPLETED
        milestone.completed_date = timezone.localdate()
        milestone.save(update_fields=['status', 'completed_date', 'updated_at'])
        logger.info(f"Milestone {milestone.id} completed")
        return milestone

    def calculate_progress(self, project_id):
        """Percentage of the project's milestones that are completed"""
        milestones = Milestone.objects.filter(project_id=project_id)
        total = milestones.count()
        if total == 0:
            return 0
        completed = milestones.filter(status=Milestone.STATUS_COMPLETED).count()
        return round(completed / total * 100)

    def get_timeline(self, project_id):
        milestones = list(self.list_milestones(project_id))
        if not milestones:
            today = timezone.localdate()
            return {'milestones': [], 'start_date': today, 'end_date': today, 'progress': 0}
        return {
            'milestones': milestones,
            'start_date': milestones[0].target_date,
            'end_date': milestones[-1].target_date,
            'progress': self.calculate_progress(project_id),
        }

    def check_overdue_milestones(self, project_id):
        """Milestones past their target date that are not completed"""
        return Milestone.objects.filter(
            project_id=project_id,
            target_date__lt=timezone.localdate(),
        ).exclude(status=Milestone.STATUS_COMPLETED).order_by('target_date', 'order_index')

    def calculate_milestone_progress(self, milestone_id):
        """Percentage of the milestone's tasks that are completed"""
        milestone = self.get_milestone(milestone_id)
        tasks = milestone.tasks.all()
        total = tasks.count()
        if total == 0:
            return 0
        completed = tasks.filter(status='completed').count()
        return round(completed / total * 100)
