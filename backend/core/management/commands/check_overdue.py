"""
Report overdue tasks, milestones and resource deliveries
Usage: python manage.py check_overdue [--project <uuid>] [--mark-milestones]
"""
from django.core.management.base import BaseCommand, CommandError
from backend.projects.models import Project, Milestone
from backend.projects.services import MilestoneService
from backend.resources.services import ResourceService
from backend.tasks.services import TaskService


class Command(BaseCommand):
    help = 'Report overdue tasks, milestones and deliveries for active projects'

    def add_arguments(self, parser):
        parser.add_argument(
            '--project',
            type=str,
            help='Only check the project with this id',
        )
        parser.add_argument(
            '--mark-milestones',
            action='store_true',
            help='Set the status of overdue milestones to overdue',
        )

    def handle(self, *args, **options):
        if options['project']:
            projects = Project.objects.filter(id=options['project'])
            if not projects.exists():
                raise CommandError(f"Project {options['project']} not found")
        else:
            projects = Project.objects.filter(status__in=Project.ACTIVE_STATUSES)

        milestone_service = MilestoneService()
        task_service = TaskService()
        resource_service = ResourceService()
        totals = {'tasks': 0, 'milestones': 0, 'deliveries': 0}

        for project in projects.order_by('name'):
            tasks = list(task_service.check_overdue_tasks(project.id))
            milestones = list(milestone_service.check_overdue_milestones(project.id))
            deliveries = list(resource_service.check_overdue_deliveries(project.id))
            if not (tasks or milestones or deliveries):
                continue

            self.stdout.write(self.style.WARNING(f'\n{project.name} ({project.id})'))
            for task in tasks:
                self.stdout.write(f'  task       {task.name} - due {task.due_date}')
            for milestone in milestones:
                self.stdout.write(f'  milestone  {milestone.name} - target {milestone.target_date}')
            for resource in deliveries:
                self.stdout.write(f'  delivery   {resource.name} - expected {resource.expected_delivery_date}')

            if options['mark_milestones']:
                Milestone.objects.filter(id__in=[m.id for m in milestones]).update(status=Milestone.STATUS_OVERDUE)

            totals['tasks'] += len(tasks)
            totals['milestones'] += len(milestones)
            totals['deliveries'] += len(deliveries)

        self.stdout.write(self.style.SUCCESS(
            f"\nOverdue: {totals['tasks']} task(s), {totals['milestones']} milestone(s), "
            f"{totals['deliveries']} delivery(ies)"
        ))
