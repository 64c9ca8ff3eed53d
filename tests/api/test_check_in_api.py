"""Tests for door staff routes."""

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import date

from core.errors import InadmissibleTicketError, NotFoundError, TicketAlreadyUsedError
from core.models import CheckInResult, DailyStats, Ticket, TicketTotals, TicketVerification
from factories import FIXED_NOW, ticket_row


class TestCheckIn:
    def test_success(self, client, check_in_service):
        ticket = Ticket.model_validate(ticket_row(is_used=True, used_at=FIXED_NOW))
        check_in_service.check_in.return_value = CheckInResult(
            ticket=ticket, customer_name="Hanako Yamada", performance_label="easel live vol.2 2025-03-01 18:30",
        )

        response = client.post("/api/staff/check-in", json={"code": ticket.code})

        assert response.status_code == 200
        assert response.json()["data"]["customer_name"] == "Hanako Yamada"
        check_in_service.check_in.assert_called_once_with(ticket.code)

    def test_already_used_reports_when_and_who(self, client, check_in_service):
        check_in_service.check_in.side_effect = TicketAlreadyUsedError(
            "Ticket already used", used_at=FIXED_NOW, customer_name="Hanako Yamada",
        )

        response = client.post("/api/staff/check-in", json={"code": "abc"})

        assert response.status_code == 409
        error = response.json()["error"]
        assert error["code"] == "TICKET_ALREADY_USED"
        assert error["details"]["used_at"] == FIXED_NOW.isoformat()

    def test_refunded_ticket(self, client, check_in_service):
        check_in_service.check_in.side_effect = InadmissibleTicketError(
            "Ticket belongs to a refunded order", order_status="refunded",
        )

        response = client.post("/api/staff/check-in", json={"code": "abc"})

        assert response.json()["error"]["code"] == "TICKET_INADMISSIBLE"

    def test_unknown_ticket(self, client, check_in_service):
        check_in_service.check_in.side_effect = NotFoundError("Ticket not found")
        assert client.post("/api/staff/check-in", json={"code": "abc"}).status_code == 404

    def test_requires_staff_session(self, unauthed_client, check_in_service):
        response = unauthed_client.post("/api/staff/check-in", json={"code": "abc"})

        assert response.status_code == 401
        check_in_service.check_in.assert_not_called()

    def test_bearer_token_accepted(self, unauthed_client, check_in_service, mock_session_manager):
        check_in_service.check_in.side_effect = NotFoundError("Ticket not found")

        response = unauthed_client.post(
            "/api/staff/check-in", json={"code": "abc"},
            headers={"Authorization": "Bearer scanner-token"},
        )

        assert response.status_code == 404
        mock_session_manager.validate_session.assert_called_once_with("scanner-token")


class TestVerify:
    def test_preview(self, client, check_in_service):
        check_in_service.verify.return_value = TicketVerification(
            code="abc", admissible=False, reason="NOT_FOUND",
        )

        response = client.get("/api/staff/tickets/abc/verify")

        assert response.json()["data"]["admissible"] is False


class TestStats:
    def test_today(self, client, stats_service):
        stats_service.today_stats.return_value = DailyStats(
            date=date(2025, 3, 1), total_checked_in=3, general_checked_in=2, reserved_checked_in=1,
        )

        response = client.get("/api/staff/stats/today")

        assert response.json()["data"] == {
            "date": "2025-03-01",
            "total_checked_in": 3,
            "general_checked_in": 2,
            "reserved_checked_in": 1,
        }

    def test_ticket_totals(self, client, stats_service):
        stats_service.ticket_totals.return_value = TicketTotals(total=10, used=4, unused=6)

        assert client.get("/api/staff/stats/tickets").json()["data"]["unused"] == 6


class TestConcurrentStations:
    def test_scans_run_in_parallel(self, client, check_in_service):
        """Two stations must be inside the service at once for either to finish."""
        barrier = threading.Barrier(2, timeout=5)
        ticket = Ticket.model_validate(ticket_row(is_used=True, used_at=FIXED_NOW))

        def check_in(code):
            barrier.wait()
            return CheckInResult(ticket=ticket, customer_name="Hanako Yamada", performance_label="easel live")

        check_in_service.check_in.side_effect = check_in

        # One shared event loop for both requests
        with client:
            with ThreadPoolExecutor(max_workers=2) as pool:
                futures = [
                    pool.submit(client.post, "/api/staff/check-in", json={"code": code})
                    for code in ("AAAA2222BBBB", "CCCC3333DDDD")
                ]
                statuses = [f.result().status_code for f in futures]

        assert statuses == [200, 200]
