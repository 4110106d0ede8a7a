# apps/core/models.py

from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.db import models


class UserManager(BaseUserManager):
    """Manager for email-identified users (there is no username)"""

    use_in_migrations = True

    def _create_user(self, email, password, **extra_fields):
        if not email:
            raise ValueError('An email address is required')
        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_user(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', False)
        extra_fields.setdefault('is_superuser', False)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)

        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True.')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True.')

        return self._create_user(email, password, **extra_fields)


class User(AbstractUser):
    """
    Application account

    Identified by email. Pending project invitations live in the
    Invitation table (``user.invitations``).
    """

    username = None
    email = models.EmailField('email address', unique=True)
    display_name = models.CharField(max_length=150, blank=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        db_table = 'user'
        ordering = ['email']

    def get_display_name(self):
        return self.display_name or self.email

    def __str__(self):
        return self.get_display_name()


class Project(models.Model):
    """Collaboration unit - owns its memberships and its tasks"""

    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    owner = models.ForeignKey(
        User,
        on_delete=models.PROTECT,
        related_name='owned_projects'
    )
    members = models.ManyToManyField(
        User,
        through='Membership',
        related_name='projects'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'project'
        ordering = ['-created_at', '-id']

    def __str__(self):
        return self.name

    def is_owner(self, user_id):
        return self.owner_id == user_id


class Membership(models.Model):
    """A user's role inside a project"""

    ADMIN = 'Admin'
    EDITOR = 'Editor'
    VIEWER = 'Viewer'

    ROLE_CHOICES = [
        (ADMIN, 'Admin'),
        (EDITOR, 'Editor'),
        (VIEWER, 'Viewer'),
    ]

    project = models.ForeignKey(
        Project,
        on_delete=models.CASCADE,
        related_name='memberships'
    )
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='memberships'
    )
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default=VIEWER)
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'membership'
        ordering = ['joined_at', 'id']
        constraints = [
            models.UniqueConstraint(fields=['project', 'user'], name='unique_project_member'),
        ]

    def __str__(self):
        return f"{self.user} - {self.project} ({self.role})"


class Invitation(models.Model):
    """
    Pending invitation of a user into a project

    ``project_name`` and ``inviter_name`` are snapshots taken when the
    invitation is sent; they are not refreshed if the project is renamed.
    """

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='invitations'
    )
    project = models.ForeignKey(
        Project,
        on_delete=models.CASCADE,
        related_name='invitations'
    )
    project_name = models.CharField(max_length=200)
    inviter_name = models.CharField(max_length=150)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'invitation'
        ordering = ['created_at', 'id']
        constraints = [
            models.UniqueConstraint(fields=['user', 'project'], name='unique_pending_invitation'),
        ]

    def __str__(self):
        return f"{self.user} -> {self.project_name}"


class Task(models.Model):
    """Kanban card of a project board"""

    TODO = 'To Do'
    IN_PROGRESS = 'In Progress'
    DONE = 'Done'

    STATUS_CHOICES = [
        (TODO, 'To Do'),
        (IN_PROGRESS, 'In Progress'),
        (DONE, 'Done'),
    ]

    LOW = 'Low'
    MEDIUM = 'Medium'
    HIGH = 'High'

    PRIORITY_CHOICES = [
        (LOW, 'Low'),
        (MEDIUM, 'Medium'),
        (HIGH, 'High'),
    ]

    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=TODO)
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default=MEDIUM)
    project = models.ForeignKey(
        Project,
        on_delete=models.CASCADE,
        related_name='tasks'
    )
    assignee = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='assigned_tasks'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'task'
        ordering = ['created_at', 'id']

    def __str__(self):
        return f"{self.title} [{self.status}]"


class Event(models.Model):
    """Personal calendar entry / private todo, visible only to its owner"""

    title = models.CharField(max_length=200)
    start = models.DateTimeField()
    end = models.DateTimeField()
    all_day = models.BooleanField(default=False)
    status = models.CharField(max_length=20, choices=Task.STATUS_CHOICES, default=Task.TODO)
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='events'
    )

    class Meta:
        db_table = 'event'
        ordering = ['start', 'id']

    def __str__(self):
        return f"{self.title} ({self.start:%Y-%m-%d})"
