"""
Kafka Topic Definitions for the Attendance & Leave Service.

Topic naming follows the pattern: <domain>-<event-type>
"""


class KafkaTopics:
    """
    Central registry of the Kafka topics this service produces and consumes.
    """

    # Produced: attendance ledger transitions
    ATTENDANCE_CHECKIN = "attendance-checkin"
    ATTENDANCE_CHECKOUT = "attendance-checkout"
    ATTENDANCE_UPDATED = "attendance-updated"
    ATTENDANCE_DELETED = "attendance-deleted"

    # Produced: leave ledger transitions
    LEAVE_REQUESTED = "leave-requested"
    LEAVE_DECIDED = "leave-decided"

    # Consumed: employee lifecycle (published by employee-management-service)
    EMPLOYEE_CREATED = "employee-created"
    EMPLOYEE_UPDATED = "employee-updated"
    EMPLOYEE_DELETED = "employee-deleted"
    EMPLOYEE_TERMINATED = "employee-terminated"

    @classmethod
    def produced_topics(cls) -> list[str]:
        return [
            cls.ATTENDANCE_CHECKIN,
            cls.ATTENDANCE_CHECKOUT,
            cls.ATTENDANCE_UPDATED,
            cls.ATTENDANCE_DELETED,
            cls.LEAVE_REQUESTED,
            cls.LEAVE_DECIDED,
        ]

    @classmethod
    def employee_topics(cls) -> list[str]:
        return [
            cls.EMPLOYEE_CREATED,
            cls.EMPLOYEE_UPDATED,
            cls.EMPLOYEE_DELETED,
            cls.EMPLOYEE_TERMINATED,
        ]
