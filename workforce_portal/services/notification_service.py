"""Notification service: persist once, then fan out over every requested placement."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

import structlog
from sqlalchemy import case, delete, insert, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from workforce_portal.config import DeliveryConfig
from workforce_portal.core.batching import BatchOutcome, resolve_by_batch, settle_all, settle_each
from workforce_portal.core.enums import (
    PRIORITY_ORDER,
    Audience,
    AudienceDimension,
    InteractionType,
    JobCategory,
    NotificationPlacement,
    NotificationStatus,
    UserLevel,
    base_job_level,
)
from workforce_portal.core.exceptions import (
    NoDeviceTokensException,
    NotificationNotFoundException,
    ValidationException,
)
from workforce_portal.core.naming import (
    branch_topic_name,
    generate_notification_id,
    prefix_topic_name_for_user,
)
from workforce_portal.models.notifications import (
    notification_audiences,
    notification_interactions,
    notifications,
)
from workforce_portal.schemas.notifications import (
    NotificationAudienceFilter,
    NotificationCreate,
    NotificationInteractionCreate,
    NotificationListOptions,
    UserNotificationFilter,
    UserNotificationListOptions,
)
from workforce_portal.services.delivery_log_service import DeliveryLogService
from workforce_portal.services.employee_service import EmployeeService
from workforce_portal.services.location_service import LocationService
from workforce_portal.services.onboarding_service import OnboardingService
from workforce_portal.services.push_notification_service import (
    PushMessage,
    PushNotificationService,
    PushResult,
)
from workforce_portal.services.recipient_resolver import RecipientResolver, ResolvedRecipients

logger = structlog.get_logger(__name__)

WILDCARD = "*"


@dataclass
class FanoutReport:
    """Per-channel outcomes of one notification fan-out."""

    recipients: ResolvedRecipients | None = None
    push: BatchOutcome[PushResult] = field(default_factory=BatchOutcome)
    topics: BatchOutcome[bool] = field(default_factory=BatchOutcome)
    user_queue: BatchOutcome[str] = field(default_factory=BatchOutcome)
    prerequisite_id: str | None = None
    channel_errors: dict[str, str] = field(default_factory=dict)


@dataclass
class NotificationDispatchResult:
    notification_id: str
    report: FanoutReport


def _parse_expiry(value: datetime | str | None) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            raise ValidationException("Invalid expiry date.") from None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _not_expired(now: datetime):
    return or_(notifications.c.expires_at.is_(None), notifications.c.expires_at >= now)


def _sort_column(sort_field: str | None, sort_order: str):
    if not sort_field:
        return notifications.c.created_at.desc()
    if sort_field not in notifications.c:
        raise ValidationException(f"Invalid sort field: {sort_field}")
    column = notifications.c[sort_field]
    return column.asc() if sort_order == "asc" else column.desc()


def is_visible_to(
    notification: dict[str, Any],
    branch_ids: list[str],
    division_ids: list[str],
    provincial_codes: list[str],
) -> bool:
    """
    Check a notification against the caller's location scope.

    National notifications are always visible and a wildcard in any of the
    caller's lists matches everything. Otherwise the notification's own
    targeting list for its visibility tier must overlap the caller's.
    """
    visibility = notification.get("visibility")
    if visibility == Audience.NATIONAL:
        return True
    if WILDCARD in branch_ids or WILDCARD in division_ids or WILDCARD in provincial_codes:
        return True

    scopes = {
        Audience.BRANCH: (notification.get("branch_ids") or [], branch_ids),
        Audience.DIVISION: (notification.get("division_ids") or [], division_ids),
        Audience.PROVINCE: (notification.get("provincial_codes") or [], provincial_codes),
    }
    if visibility not in scopes:
        return False

    targeted, caller_scope = scopes[visibility]
    return bool(set(targeted) & set(caller_scope))


class NotificationService:
    """Service for sending, listing and interacting with notifications."""

    def __init__(
        self,
        config: DeliveryConfig,
        push_service: PushNotificationService,
        resolver: RecipientResolver | None = None,
        employee_service: EmployeeService | None = None,
        location_service: LocationService | None = None,
        onboarding_service: OnboardingService | None = None,
    ):
        self.config = config
        self.push_service = push_service
        self.employee_service = employee_service or EmployeeService()
        self.resolver = resolver or RecipientResolver(config, self.employee_service)
        self.location_service = location_service or LocationService()
        self.onboarding_service = onboarding_service or OnboardingService()

    async def send_notification(
        self,
        db: AsyncSession,
        transaction_id: str,
        request: NotificationCreate,
    ) -> str:
        """
        Persist a notification and deliver it over its placements.

        Returns:
            The notification id

        Raises:
            ValidationException: If the request is invalid; nothing is written
            NoDeviceTokensException: If push recipients have no device tokens;
                the notification is still persisted
        """
        result = await self.dispatch_notification(db, transaction_id, request)
        return result.notification_id

    async def dispatch_notification(
        self,
        db: AsyncSession,
        transaction_id: str,
        request: NotificationCreate,
    ) -> NotificationDispatchResult:
        """
        Persist a notification, then run every requested channel independently.

        A failing channel never aborts the others nor un-persists the
        notification. The only failure surfaced after persistence is a push
        with no reachable device, raised once all channels have run.
        """
        log = logger.bind(transaction_id=transaction_id)
        placements = set(request.placements)
        log.info(
            "send_notification_initiated",
            title=request.title,
            placements=sorted(placements),
        )

        expires_at = await self._validate(db, request, placements)

        notification_id = request.notification_id or generate_notification_id()
        log = log.bind(notification_id=notification_id)

        await self._persist(db, notification_id, request, expires_at)
        log.info("notification_persisted")

        report = FanoutReport()
        no_tokens_error: NoDeviceTokensException | None = None
        message = PushMessage(
            title=request.title,
            body=request.body,
            redirection_screen=request.redirection_screen,
            redirection_screen_props=request.redirection_screen_props,
        )

        if NotificationPlacement.PUSH in placements and request.user_ps_ids:
            try:
                await self._create_push_notification(
                    db, transaction_id, notification_id, request, message, report
                )
            except NoDeviceTokensException as e:
                no_tokens_error = e
                report.channel_errors[NotificationPlacement.PUSH] = e.message
                log.error("push_notification_failed", error=e.message)
            except Exception as e:
                await db.rollback()
                report.channel_errors[NotificationPlacement.PUSH] = str(e)
                log.error("push_notification_failed", error=str(e))
        elif NotificationPlacement.PUSH in placements and request.branch_ids:
            # Branch pushes target field staff only
            job_level = base_job_level(UserLevel.FIELD_STAFF)
            report.topics = await settle_all(
                list(dict.fromkeys(request.branch_ids)),
                lambda branch_id: self.notify_branch_and_job_level_by_topic_name(
                    transaction_id, branch_id, job_level, message=message
                ),
            )

        if NotificationPlacement.PREREQUISITE in placements and (
            request.user_ps_ids or request.branch_ids
        ):
            try:
                report.prerequisite_id = await self.onboarding_service.create_prerequisite(
                    db,
                    transaction_id,
                    title=request.title,
                    description=request.body,
                    audience_level=request.audience_level,
                    user_ps_ids=request.user_ps_ids,
                    branch_ids=request.branch_ids,
                    division_ids=request.division_ids,
                    provincial_codes=request.provincial_codes,
                    access_level_names=[UserLevel.FIELD_STAFF],
                    expires_at=expires_at,
                )
            except Exception as e:
                await db.rollback()
                report.channel_errors[NotificationPlacement.PREREQUISITE] = str(e)
                log.error("prerequisite_creation_failed", error=str(e))

        if placements & {NotificationPlacement.DASHBOARD, NotificationPlacement.USER_QUEUE} and (
            request.user_ps_ids
        ):
            report.user_queue = await settle_each(
                dict.fromkeys(request.user_ps_ids),
                lambda ps_id: self._create_user_notification(
                    db, transaction_id, ps_id, notification_id, request
                ),
            )
            for outcome in report.user_queue.failed:
                log.warning(
                    "user_notification_failed",
                    user_ps_id=outcome.item,
                    error=str(outcome.error),
                )

        if no_tokens_error is not None:
            raise no_tokens_error

        log.info("send_notification_successful")
        return NotificationDispatchResult(notification_id=notification_id, report=report)

    async def _validate(
        self,
        db: AsyncSession,
        request: NotificationCreate,
        placements: set[NotificationPlacement],
    ) -> datetime | None:
        needs_ranking = placements & {
            NotificationPlacement.DASHBOARD,
            NotificationPlacement.USER_QUEUE,
        }
        if (
            not placements
            or (needs_ranking and (not request.priority or not request.visibility))
            or not request.notification_type
            or not request.origin
            or not request.title
            or not request.body
        ):
            raise ValidationException("Required fields are missing.")

        expires_at = _parse_expiry(request.expires_at)

        if request.branch_ids is not None:
            existing = await self.location_service.get_branches_by_ids(db, request.branch_ids)
            if len(existing) < len(set(request.branch_ids)):
                raise ValidationException(
                    "Some or all inputted branchIds don't exist in the system."
                )

        return expires_at

    async def _persist(
        self,
        db: AsyncSession,
        notification_id: str,
        request: NotificationCreate,
        expires_at: datetime | None,
    ) -> None:
        now = datetime.now(UTC)
        await db.execute(
            insert(notifications).values(
                notification_id=notification_id,
                priority=request.priority,
                expires_at=expires_at,
                placements=[str(placement) for placement in request.placements],
                redirection_screen=request.redirection_screen,
                redirection_data=request.redirection_screen_props,
                visibility=request.visibility,
                audience_level=request.audience_level,
                notification_type=request.notification_type,
                status=NotificationStatus.SENT,
                origin=request.origin,
                title=request.title,
                body=request.body,
                description=request.description,
                user_ps_ids=request.user_ps_ids or [],
                branch_ids=request.branch_ids or [],
                division_ids=request.division_ids or [],
                provincial_codes=request.provincial_codes or [],
                is_clearable=True if request.is_clearable is None else request.is_clearable,
                is_deleted=False,
                created_by_ps_id=request.created_by.employee_ps_id if request.created_by else None,
                created_by_name=request.created_by.display_name if request.created_by else None,
                valid_from=now,
                created_at=now,
                updated_at=now,
            )
        )

        audience_rows = [
            {"notification_id": notification_id, "dimension": dimension, "target_id": target_id}
            for dimension, targets in (
                (AudienceDimension.USER, request.user_ps_ids),
                (AudienceDimension.BRANCH, request.branch_ids),
                (AudienceDimension.DIVISION, request.division_ids),
                (AudienceDimension.PROVINCE, request.provincial_codes),
            )
            for target_id in dict.fromkeys(targets or [])
        ]
        if audience_rows:
            await db.execute(insert(notification_audiences), audience_rows)

        await db.commit()

    async def _create_push_notification(
        self,
        db: AsyncSession,
        transaction_id: str,
        notification_id: str,
        request: NotificationCreate,
        message: PushMessage,
        report: FanoutReport,
    ) -> None:
        log = logger.bind(transaction_id=transaction_id, notification_id=notification_id)

        recipients = await self.resolver.resolve(db, transaction_id, request.user_ps_ids)
        report.recipients = recipients
        if recipients.is_empty:
            raise NoDeviceTokensException()

        async def send_batch(batch: list[str]) -> None:
            batch_outcome = await settle_all(
                batch,
                lambda ps_id: self.push_service.send_push_notification(
                    transaction_id, ps_id, recipients.device_tokens[ps_id], message
                ),
            )
            report.push.extend(batch_outcome)

            for outcome in batch_outcome.failed:
                log.warning(
                    "user_not_notified",
                    user_ps_id=outcome.item,
                    error=str(outcome.error),
                )

            if self.config.backup_push_notification_results:
                await self._store_delivery_logs(
                    db, transaction_id, notification_id, request, batch_outcome
                )

        await resolve_by_batch(
            list(recipients.device_tokens),
            self.config.device_token_batch_size,
            send_batch,
            delay_seconds=self.config.batch_delay_seconds,
        )

        log.info(
            "push_notification_completed",
            notified=len(report.push.succeeded),
            failed=len(report.push.failed),
        )

    async def _store_delivery_logs(
        self,
        db: AsyncSession,
        transaction_id: str,
        notification_id: str,
        request: NotificationCreate,
        batch_outcome: BatchOutcome[PushResult],
    ) -> None:
        entries = [
            entry
            for outcome in batch_outcome.succeeded
            for entry in DeliveryLogService.build_entries(
                notification_id=notification_id,
                user_ps_id=outcome.item,
                result=outcome.value,
                notification_type=request.notification_type,
                notification_origin=request.origin,
                title=request.title,
                body=request.body,
                description=request.description,
            )
        ]
        try:
            await DeliveryLogService.store_notification_log(db, transaction_id, entries)
        except Exception as e:
            await db.rollback()
            logger.error(
                "notification_log_failed",
                transaction_id=transaction_id,
                notification_id=notification_id,
                error=str(e),
            )

    async def _create_user_notification(
        self,
        db: AsyncSession,
        transaction_id: str,
        ps_id: str,
        notification_id: str,
        request: NotificationCreate,
    ) -> str:
        try:
            await self.employee_service.add_user_alert(
                db,
                transaction_id,
                ps_id,
                alert_id=notification_id,
                alert_name=request.title,
                alert_title=request.body,
                alert_desc=request.description,
            )
        except Exception:
            await db.rollback()
            raise
        return notification_id

    async def get_notifications(
        self,
        db: AsyncSession,
        transaction_id: str,
        filters: NotificationAudienceFilter,
        options: NotificationListOptions | None = None,
    ) -> list[dict[str, Any]]:
        """
        List live notifications visible to a location scope.

        Raises:
            ValidationException: If no branch, division or province scope is given
        """
        log = logger.bind(transaction_id=transaction_id)
        options = options or NotificationListOptions()

        if (
            filters.branch_ids is None
            and filters.division_ids is None
            and filters.provincial_codes is None
        ):
            raise ValidationException("Invalid branch | division | provincialCodes!")

        query = select(notifications).where(_not_expired(datetime.now(UTC)))

        if options.search:
            pattern = f"%{options.search}%"
            query = query.where(
                or_(
                    notifications.c.notification_id.ilike(pattern),
                    notifications.c.title.ilike(pattern),
                    notifications.c.body.ilike(pattern),
                    notifications.c.created_by_name.ilike(pattern),
                )
            )
        if filters.notification_type:
            query = query.where(notifications.c.notification_type == filters.notification_type)
        if filters.is_deleted is not None:
            query = query.where(notifications.c.is_deleted == filters.is_deleted)

        query = (
            query.order_by(_sort_column(options.sort_field, options.sort_order))
            .offset(options.skip)
            .limit(options.limit)
        )

        result = await db.execute(query)
        rows = [dict(row._mapping) for row in result.fetchall()]

        branch_ids = filters.branch_ids or []
        division_ids = filters.division_ids or []
        provincial_codes = filters.provincial_codes or []
        visible = [
            row for row in rows if is_visible_to(row, branch_ids, division_ids, provincial_codes)
        ]

        log.info("notifications_retrieved", fetched=len(rows), total=len(visible))
        return visible

    async def get_user_notifications_by_filter(
        self,
        db: AsyncSession,
        transaction_id: str,
        filters: UserNotificationFilter,
        options: UserNotificationListOptions | None = None,
    ) -> list[dict[str, Any]]:
        """
        List a user's inbox, most urgent first.

        Returns an empty list when the query fails.
        """
        log = logger.bind(transaction_id=transaction_id, user_ps_id=filters.user_ps_id)
        options = options or UserNotificationListOptions()

        try:
            recipient_ids = select(notification_audiences.c.notification_id).where(
                notification_audiences.c.dimension == AudienceDimension.USER,
                notification_audiences.c.target_id == filters.user_ps_id,
            )
            query = select(notifications).where(
                notifications.c.notification_id.in_(recipient_ids),
                notifications.c.is_deleted == filters.is_deleted,
                _not_expired(datetime.now(UTC)),
            )

            if filters.branch_ids and WILDCARD not in filters.branch_ids:
                branch_scoped_ids = select(notification_audiences.c.notification_id).where(
                    notification_audiences.c.dimension == AudienceDimension.BRANCH,
                    notification_audiences.c.target_id.in_(filters.branch_ids),
                )
                query = query.where(notifications.c.notification_id.in_(branch_scoped_ids))

            priority_order = case(
                {str(priority): index for index, priority in enumerate(PRIORITY_ORDER)},
                value=notifications.c.priority,
                else_=len(PRIORITY_ORDER),
            )
            query = (
                query.order_by(
                    priority_order.asc(),
                    _sort_column(options.sort_field, options.sort_order),
                )
                .offset(options.skip)
                .limit(options.limit)
            )

            result = await db.execute(query)
            user_notifications = [dict(row._mapping) for row in result.fetchall()]
        except Exception as e:
            log.error("user_notifications_retrieval_failed", error=str(e))
            return []

        log.info("user_notifications_retrieved", total=len(user_notifications))
        return user_notifications

    async def notification_interaction(
        self,
        db: AsyncSession,
        transaction_id: str,
        interaction: NotificationInteractionCreate,
    ) -> str:
        """
        Record a user's interaction with a notification.

        Only the latest interaction per user is kept. Repeating the same type
        is a no-op. A Read also clears the notification from the user's top
        alerts in the same transaction.

        Raises:
            ValidationException: If the interaction type is unknown
            NotificationNotFoundException: If the notification does not exist
        """
        log = logger.bind(
            transaction_id=transaction_id,
            notification_id=interaction.notification_id,
            user_ps_id=interaction.interacted_user_ps_id,
        )

        try:
            interaction_type = InteractionType(interaction.interaction_type)
        except ValueError:
            log.error(
                "notification_interaction_invalid",
                interaction_type=interaction.interaction_type,
            )
            raise ValidationException("Invalid Interaction Type!") from None

        result = await db.execute(
            select(notifications.c.notification_id).where(
                notifications.c.notification_id == interaction.notification_id
            )
        )
        if result.first() is None:
            log.warning("notification_interaction_target_missing")
            raise NotificationNotFoundException()

        result = await db.execute(
            select(notification_interactions).where(
                notification_interactions.c.notification_id == interaction.notification_id,
                notification_interactions.c.interacted_user_ps_id
                == interaction.interacted_user_ps_id,
            )
        )
        existing = result.first()

        if existing and existing.interaction_type == interaction_type:
            return interaction.notification_id

        try:
            if existing:
                await db.execute(
                    delete(notification_interactions).where(
                        notification_interactions.c.id == existing.id
                    )
                )

            await db.execute(
                insert(notification_interactions).values(
                    notification_id=interaction.notification_id,
                    interaction_type=interaction_type,
                    interacted_user_ps_id=interaction.interacted_user_ps_id,
                    user_display_name=interaction.user_display_name,
                    user_image_link=interaction.user_image_link,
                    interacted_at=datetime.now(UTC),
                )
            )

            if interaction_type == InteractionType.READ:
                await self.employee_service.remove_user_alert(
                    db, interaction.interacted_user_ps_id, interaction.notification_id
                )

            await db.commit()
        except Exception as e:
            await db.rollback()
            log.error("notification_interaction_failed", error=str(e))
            raise

        log.info("notification_interaction_recorded", interaction_type=interaction_type)
        return interaction.notification_id

    async def get_interacted_notifications_by_ids(
        self,
        db: AsyncSession,
        transaction_id: str,
        notification_ids: list[str],
        user_ps_id: str,
    ) -> list[dict[str, Any]]:
        """Get a user's interactions with the given notifications, or [] on failure."""
        if not notification_ids:
            return []

        try:
            result = await db.execute(
                select(notification_interactions).where(
                    notification_interactions.c.notification_id.in_(notification_ids),
                    notification_interactions.c.interacted_user_ps_id == user_ps_id,
                )
            )
            return [dict(row._mapping) for row in result.fetchall()]
        except Exception as e:
            logger.error(
                "interacted_notifications_retrieval_failed",
                transaction_id=transaction_id,
                user_ps_id=user_ps_id,
                error=str(e),
            )
            return []

    async def get_notification_by_id(
        self,
        db: AsyncSession,
        transaction_id: str,
        notification_id: str,
    ) -> dict[str, Any] | None:
        """Get a notification by id, including expired and soft deleted ones."""
        logger.info(
            "notification_lookup",
            transaction_id=transaction_id,
            notification_id=notification_id,
        )
        result = await db.execute(
            select(notifications).where(notifications.c.notification_id == notification_id)
        )
        row = result.first()
        return dict(row._mapping) if row else None

    async def remove_notification_by_id(
        self,
        db: AsyncSession,
        transaction_id: str,
        notification_id: str,
        force: bool = False,
    ) -> str:
        """
        Remove a notification.

        Args:
            force: Hard delete the notification with its audience and
                interactions instead of flagging it deleted
        """
        log = logger.bind(transaction_id=transaction_id, notification_id=notification_id)

        if not notification_id:
            raise ValidationException("Provide a valid notificationId to remove")

        if force:
            await db.execute(
                delete(notification_interactions).where(
                    notification_interactions.c.notification_id == notification_id
                )
            )
            await db.execute(
                delete(notification_audiences).where(
                    notification_audiences.c.notification_id == notification_id
                )
            )
            result = await db.execute(
                delete(notifications).where(notifications.c.notification_id == notification_id)
            )
            await db.commit()
            log.info("notification_hard_removed", deleted_count=result.rowcount)
        else:
            await db.execute(
                update(notifications)
                .where(notifications.c.notification_id == notification_id)
                .values(is_deleted=True, updated_at=datetime.now(UTC))
            )
            await db.commit()
            log.info("notification_soft_removed")

        return notification_id

    async def notify_branch_and_job_level_by_topic_name(
        self,
        transaction_id: str,
        branch_id: str,
        job_level: int,
        job_category: JobCategory | None = None,
        *,
        message: PushMessage,
    ) -> bool:
        """Push to a branch job level topic. Returns False instead of raising."""
        log = logger.bind(
            transaction_id=transaction_id,
            branch_id=branch_id,
            job_level=job_level,
            job_category=job_category,
        )
        topic_name = branch_topic_name(branch_id, job_level, job_category)

        try:
            await self.push_service.send_push_notification_by_topic(
                transaction_id, topic_name, message
            )
        except Exception as e:
            log.error("branch_topic_notification_failed", topic=topic_name, error=str(e))
            return False

        log.info("branch_topic_notification_sent", topic=topic_name)
        return True

    async def notify_employee_by_topic_name(
        self,
        transaction_id: str,
        employee_ps_id: str,
        message: PushMessage,
    ) -> bool:
        """Push to an employee's personal topic. Returns False instead of raising."""
        log = logger.bind(transaction_id=transaction_id, employee_ps_id=employee_ps_id)
        topic_name = prefix_topic_name_for_user(employee_ps_id)

        try:
            await self.push_service.send_push_notification_by_topic(
                transaction_id, topic_name, message
            )
        except Exception as e:
            log.error("employee_topic_notification_failed", topic=topic_name, error=str(e))
            return False

        log.info("employee_topic_notification_sent", topic=topic_name)
        return True

    async def subscribe_to_topic(self, transaction_id: str, token: str, topic: str) -> None:
        await self.push_service.subscribe_to_topic(transaction_id, token, topic)

    async def unsubscribe_from_topic(self, transaction_id: str, token: str, topic: str) -> None:
        await self.push_service.unsubscribe_from_topic(transaction_id, token, topic)
