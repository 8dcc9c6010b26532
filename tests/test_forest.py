"""
Tests for the Forest engine: insertion, lookup, transactions, reports
and integrity.
"""

import pytest
from decimal import Decimal

from chart_of_accounts.audit import AuditLogger
from chart_of_accounts.forest import Forest, Node
from chart_of_accounts.models.account import Account, Transaction, TransactionKind
from chart_of_accounts.models.results import ForestErrorKind
from chart_of_accounts.policies import CategorySignConvention, DigitPrefixPolicy
from chart_of_accounts.validation import ForestValidator


def snapshot(forest: Forest) -> list[tuple]:
    """Comparable view of the whole forest."""
    return [
        (
            depth,
            node.number,
            node.account.description,
            node.account.balance,
            tuple(node.account.transactions),
        )
        for node, depth in forest.walk()
    ]


class TestNode:
    """Tests for the structural Node wrapper."""
    
    def test_parent_is_weak(self):
        """Dropping the last strong reference to a parent clears the link."""
        parent = Node(Account(number=1000, description="Assets"))
        child = parent.add_child(Node(Account(number=1100, description="Cash")))
        
        assert child.parent() is parent
        assert parent.parent() is None
        assert parent.is_root and not child.is_root
        
        del parent
        assert child.parent() is None
    
    def test_children_in_insertion_order_and_restartable(self):
        """Children iterate in insertion order on every pass."""
        root = Node(Account(number=1000, description="Assets"))
        for number in (1300, 1100, 1200):
            root.add_child(Node(Account(number=number, description=str(number))))
        
        first = [child.number for child in root.children()]
        second = [child.number for child in root.children()]
        assert first == second == [1300, 1100, 1200]
        assert root.child_count == 3
    
    def test_walk_is_depth_first(self):
        """walk() yields nodes pre-order with their depths."""
        root = Node(Account(number=1000, description="Assets"))
        cash = root.add_child(Node(Account(number=1100, description="Cash")))
        root.add_child(Node(Account(number=1200, description="Receivables")))
        petty = cash.add_child(Node(Account(number=1110, description="Petty cash")))
        
        assert [(n.number, d) for n, d in root.walk()] == [
            (1000, 0), (1100, 1), (1110, 2), (1200, 1),
        ]
        assert petty.depth == 2


class TestAddAccount:
    """Tests for account insertion."""
    
    def test_first_account_becomes_root(self, forest):
        """The first well-formed root number starts a new tree."""
        result = forest.add_account(1000, "Assets", Decimal("0"))
        
        assert result.success
        assert result.account_number == 1000
        assert result.saved is None
        assert [root.number for root in forest.roots] == [1000]
        assert forest.find_account(1000).parent() is None
    
    def test_child_attaches_under_prefix_parent(self, forest):
        """A child attaches under its prefix parent."""
        forest.add_account(1000, "Assets", Decimal("0"))
        result = forest.add_account(1100, "Cash", Decimal("0"))
        
        assert result.success
        assert "under 1000" in result.message
        assert forest.find_account(1100).parent() is forest.find_account(1000)
        assert len(forest.roots) == 1
    
    def test_attaches_to_nearest_existing_ancestor(self, forest):
        """Placement uses the nearest ancestor present at insertion time."""
        forest.add_account(1000, "Assets")
        forest.add_account(1110, "Petty cash")
        forest.add_account(1100, "Cash")
        forest.add_account(1120, "Bank")
        
        assert forest.find_account(1110).parent().number == 1000
        assert forest.find_account(1120).parent().number == 1100
    
    def test_roots_keep_insertion_order(self, forest):
        """Roots are kept in the order they were added."""
        for number in (3000, 1000, 2000):
            forest.add_account(number, f"Root {number}")
        assert [root.number for root in forest.roots] == [3000, 1000, 2000]
    
    def test_duplicate_account_rejected(self, forest):
        """A duplicate number is rejected and the forest is unchanged."""
        forest.add_account(1000, "Assets")
        forest.add_account(1100, "Cash")
        before = snapshot(forest)
        
        result = forest.add_account(1100, "Cash again", Decimal("5"))
        
        assert not result.success
        assert result.error == ForestErrorKind.DUPLICATE_ACCOUNT
        assert snapshot(forest) == before
        assert forest.find_account(1100).account.description == "Cash"
    
    def test_no_valid_parent_rejected(self, forest):
        """A number with no existing ancestor is rejected."""
        result = forest.add_account(1100, "Cash")
        
        assert result.error == ForestErrorKind.INVALID_HIERARCHY_PLACEMENT
        assert len(forest) == 0
        assert forest.find_account(1100) is None
    
    def test_wrong_width_rejected(self, forest):
        """Numbers of the wrong width are rejected."""
        result = forest.add_account(100, "Too short")
        assert result.error == ForestErrorKind.INVALID_HIERARCHY_PLACEMENT
        assert "exactly 4 digits" in result.message

    def test_huge_number_rejected_as_result(self, forest, audit_storage):
        """A 600-digit number is a placement failure, not an exception."""
        result = forest.add_account(10**600, "Huge")

        assert result.error == ForestErrorKind.INVALID_HIERARCHY_PLACEMENT
        assert result.account_number == 10**600
        assert audit_storage.types() == ["account_rejected"]
        assert len(forest) == 0

    @pytest.mark.parametrize("number", [0, -1000, "1000", None, True, 10.0])
    def test_non_positive_or_non_integer_number_rejected(self, forest, number):
        """Non-integer, boolean or non-positive numbers are invalid input."""
        result = forest.add_account(number, "Bad")
        assert result.error == ForestErrorKind.INVALID_INPUT
        assert len(forest) == 0
    
    @pytest.mark.parametrize("description", ["", "   ", "two\nlines", "x" * 201])
    def test_invalid_description_rejected(self, forest, description):
        """Empty, multi-line or overlong descriptions are invalid input."""
        result = forest.add_account(1000, description)
        assert result.error == ForestErrorKind.INVALID_INPUT
        assert len(forest) == 0
        assert forest.roots == ()
    
    def test_initial_balance(self, forest):
        """The initial balance is stored as given."""
        forest.add_account(1000, "Assets", Decimal("125.50"))
        assert forest.find_account(1000).account.balance == Decimal("125.50")
    
    def test_sign_convention_sets_normal_side(self, storage, audit_storage):
        """The sign convention decides each account's normal side."""
        forest = Forest(
            sign_convention=CategorySignConvention(),
            storage=storage,
            audit_logger=AuditLogger(audit_storage),
        )
        forest.add_account(1000, "Assets")
        forest.add_account(2000, "Liabilities")
        
        assert forest.find_account(1000).account.normal_side == TransactionKind.DEBIT
        assert forest.find_account(2000).account.normal_side == TransactionKind.CREDIT
        
        forest.add_transaction(2000, Transaction.credit("300"))
        assert forest.find_account(2000).account.balance == Decimal("300")
    
    def test_digit_prefix_policy(self, storage):
        """The digit-prefix policy builds variable-length hierarchies."""
        forest = Forest(attachment_policy=DigitPrefixPolicy(), storage=storage)
        assert forest.add_account(1, "Assets").success
        assert forest.add_account(11, "Cash").success
        assert forest.add_account(111, "Petty cash").success
        assert forest.add_account(21, "Loans").error == ForestErrorKind.INVALID_HIERARCHY_PLACEMENT
        assert forest.find_account(111).depth == 2
    
    def test_audit_events(self, forest, audit_storage):
        """Additions and rejections are both audited."""
        forest.add_account(1000, "Assets")
        forest.add_account(1000, "Assets")
        assert audit_storage.types() == ["account_added", "account_rejected"]
        assert audit_storage.events[1].error_code == "duplicate_account"
    
    def test_broken_audit_store_does_not_fail_operation(self, storage, broken_audit_logger):
        """A failing audit store never fails the operation."""
        forest = Forest(storage=storage, audit_logger=broken_audit_logger)
        assert forest.add_account(1000, "Assets").success
        assert 1000 in forest


class TestFindAccount:
    """Tests for index lookup."""
    
    def test_find_existing(self, populated_forest):
        """An existing account is found by number."""
        node = populated_forest.find_account(1110)
        assert node.account.description == "Petty cash"
    
    def test_find_missing_returns_none(self, populated_forest):
        """A missing account yields None."""
        assert populated_forest.find_account(9999) is None
        assert populated_forest.find_account([1000]) is None
    
    def test_lookup_is_idempotent(self, populated_forest):
        """Repeated lookups return the same node."""
        first = populated_forest.find_account(1100)
        assert all(populated_forest.find_account(1100) is first for _ in range(5))
    
    def test_container_protocol(self, populated_forest):
        """len, membership and iteration cover every account."""
        assert len(populated_forest) == 6
        assert 1200 in populated_forest
        assert 9999 not in populated_forest
        assert [node.number for node in populated_forest] == [
            1000, 1100, 1110, 1200, 2000, 2100,
        ]
    
    def test_account_summary(self, populated_forest):
        """The summary shows number, description and balance."""
        result = populated_forest.account_summary(1100)
        assert result.success
        assert result.text == "Account Number: 1100\nDescription: Cash\nBalance: 300.00"
    
    def test_account_summary_missing(self, populated_forest):
        """A summary for a missing account is ACCOUNT_NOT_FOUND."""
        result = populated_forest.account_summary(4242)
        assert result.error == ForestErrorKind.ACCOUNT_NOT_FOUND
        assert result.text is None
    
    def test_list_transactions(self, populated_forest):
        """Transactions are listed with their indexes."""
        assert populated_forest.list_transactions(1100) == [
            (0, Transaction.debit("500")),
            (1, Transaction.credit("200")),
        ]
        assert populated_forest.list_transactions(1200) == []
        assert populated_forest.list_transactions(4242) is None


class TestTransactions:
    """Tests for applying and deleting transactions."""
    
    def test_example_scenario(self, forest):
        """Assets/Cash walkthrough from start to duplicate rejection."""
        assert forest.add_account(1000, "Assets", Decimal("0")).success
        assert forest.add_account(1100, "Cash", Decimal("0")).success
        assert forest.find_account(1100).parent().number == 1000
        
        assert forest.add_transaction(1100, Transaction(amount=500, kind=TransactionKind.DEBIT)).success
        assert forest.find_account(1100).account.balance == Decimal("500")
        
        assert forest.delete_transaction(1100, 0).success
        assert forest.find_account(1100).account.balance == Decimal("0")
        
        assert forest.add_account(1100, "Cash").error == ForestErrorKind.DUPLICATE_ACCOUNT
    
    def test_add_transaction_unknown_account(self, populated_forest):
        """Transactions against a missing account are rejected."""
        result = populated_forest.add_transaction(4242, Transaction.debit("1"))
        assert result.error == ForestErrorKind.ACCOUNT_NOT_FOUND
        assert result.account_number == 4242
    
    def test_add_transaction_requires_transaction(self, populated_forest):
        """Only Transaction objects can be applied."""
        result = populated_forest.add_transaction(1100, {"amount": 5, "kind": "debit"})
        assert result.error == ForestErrorKind.INVALID_INPUT
        assert populated_forest.find_account(1100).account.transaction_count == 2
    
    def test_transactions_do_not_roll_up(self, populated_forest):
        """Each account keeps its own balance; parents are not adjusted."""
        assert populated_forest.find_account(1000).account.balance == Decimal("0")
        assert populated_forest.find_account(1100).account.balance == Decimal("300")
    
    def test_delete_transaction(self, populated_forest):
        """Deleting a transaction reverses its balance effect."""
        result = populated_forest.delete_transaction(1100, 1)
        account = populated_forest.find_account(1100).account
        
        assert result.success
        assert account.balance == Decimal("500")
        assert account.transactions == [Transaction.debit("500")]
    
    @pytest.mark.parametrize("index", [-1, 2, 99])
    def test_delete_out_of_range(self, populated_forest, index):
        """Indexes outside the transaction list are rejected."""
        result = populated_forest.delete_transaction(1100, index)
        account = populated_forest.find_account(1100).account
        
        assert result.error == ForestErrorKind.INDEX_OUT_OF_RANGE
        assert account.balance == Decimal("300")
        assert account.transaction_count == 2
    
    @pytest.mark.parametrize("index", ["0", 0.0, None, True])
    def test_delete_with_non_integer_index(self, populated_forest, index):
        """A non-int index is rejected as invalid input, not raised."""
        result = populated_forest.delete_transaction(1100, index)
        account = populated_forest.find_account(1100).account

        assert result.error == ForestErrorKind.INVALID_INPUT
        assert account.balance == Decimal("300")
        assert account.transaction_count == 2

    def test_delete_on_empty_account(self, populated_forest):
        """An account without transactions has no valid index."""
        result = populated_forest.delete_transaction(1200, 0)
        assert result.error == ForestErrorKind.INDEX_OUT_OF_RANGE
    
    def test_delete_unknown_account(self, populated_forest):
        """Deleting from a missing account is ACCOUNT_NOT_FOUND."""
        result = populated_forest.delete_transaction(4242, 0)
        assert result.error == ForestErrorKind.ACCOUNT_NOT_FOUND
    
    def test_balance_invariant(self, populated_forest):
        """Balance equals opening balance plus signed transactions throughout."""
        populated_forest.add_transaction(2100, Transaction.credit("250"))
        populated_forest.add_transaction(2100, Transaction.debit("75.25"))
        populated_forest.delete_transaction(2100, 0)
        
        for node in populated_forest:
            account = node.account
            signed = sum(account.signed_amount(t) for t in account.transactions)
            assert account.balance == account.opening_balance + signed
        
        assert populated_forest.find_account(2100).account.opening_balance == Decimal("1000")
    
    def test_audit_events(self, populated_forest, audit_storage):
        """Applied, deleted and rejected transactions are audited."""
        populated_forest.delete_transaction(1100, 0)
        populated_forest.delete_transaction(1100, 5)
        assert audit_storage.types()[-2:] == ["transaction_deleted", "transaction_rejected"]


class TestReports:
    """Tests for detailed reports and the forest outline."""
    
    def test_detailed_report_depth_first(self, populated_forest):
        """Accounts in the report follow depth-first order."""
        result = populated_forest.detailed_report(1000)
        text = result.text
        
        assert result.success
        positions = [text.index(f"Account {n}:") for n in (1000, 1100, 1110, 1200)]
        assert positions == sorted(positions)
        assert "Account 2000:" not in text
        assert "Accounts: 4" in text
        assert "Subtree total: 350.00" in text
    
    def test_detailed_report_lists_transactions(self, populated_forest):
        """Each account's transactions appear with their indexes."""
        text = populated_forest.detailed_report(1100).text
        assert "[0] debit  500.00" in text
        assert "[1] credit 200.00" in text
        assert "Balance: 300.00" in text
    
    def test_detailed_report_example_layout(self, forest):
        """The report layout for a small subtree is exact."""
        forest.add_account(1000, "Assets", Decimal("0"))
        forest.add_account(1100, "Cash", Decimal("0"))
        forest.add_transaction(1100, Transaction.debit("500"))
        
        lines = forest.detailed_report(1000).text.splitlines()
        
        assert lines[0] == "Detailed report for account 1000"
        assert lines[2:10] == [
            "Account 1000: Assets",
            "  Balance: 0.00",
            "  Transactions:",
            "    (no transactions)",
            "    Account 1100: Cash",
            "      Balance: 500.00",
            "      Transactions:",
            "        [0] debit  500.00",
        ]
    
    def test_detailed_report_missing_account(self, populated_forest):
        """A report for a missing account is ACCOUNT_NOT_FOUND."""
        result = populated_forest.detailed_report(4242)
        assert result.error == ForestErrorKind.ACCOUNT_NOT_FOUND
    
    def test_detailed_report_is_read_only(self, populated_forest):
        """Rendering a report does not change the forest."""
        before = snapshot(populated_forest)
        populated_forest.detailed_report(1000)
        assert snapshot(populated_forest) == before
    
    def test_write_detailed_report(self, populated_forest, tmp_path):
        """The written report matches the returned text."""
        destination = tmp_path / "cash.txt"
        result = populated_forest.write_detailed_report(1100, str(destination))
        
        assert result.success
        assert destination.read_text(encoding="utf-8") == result.text

    def test_report_audit_event(self, populated_forest, audit_storage, tmp_path):
        """Report events record the subtree size and destination."""
        destination = str(tmp_path / "assets.txt")
        populated_forest.write_detailed_report(1000, destination)

        event = audit_storage.events[-1]
        assert event.event_type.value == "report_generated"
        assert event.details == {"account_count": 4, "destination": destination}

    def test_write_detailed_report_missing_directory(self, populated_forest, tmp_path):
        """An unwritable destination is an IO_ERROR."""
        destination = tmp_path / "reports" / "cash.txt"
        result = populated_forest.write_detailed_report(1100, str(destination))
        
        assert result.error == ForestErrorKind.IO_ERROR
        assert not destination.exists()
    
    def test_display_forest(self, populated_forest):
        """The outline indents by depth with roots in order."""
        assert populated_forest.display_forest() == (
            "1000  Assets  0.00\n"
            "    1100  Cash  300.00\n"
            "        1110  Petty cash  50.00\n"
            "    1200  Receivables  0.00\n"
            "2000  Liabilities  0.00\n"
            "    2100  Loans  1,000.00\n"
        )
    
    def test_display_empty_forest(self, forest):
        """An empty forest has a placeholder outline."""
        assert forest.display_forest() == "(empty chart of accounts)\n"


class TestIntegrity:
    """Tests for the integrity check."""
    
    def test_valid_forest(self, populated_forest):
        """A forest built through the API passes every check."""
        result = populated_forest.check_integrity()
        assert result.is_valid
        assert result.account_count == 6
        assert result.issues == []
    
    def test_detects_index_drift(self, populated_forest):
        """An index entry that drifted from its node is reported."""
        # simulate a corrupted index by reaching into internals
        del populated_forest._index[1200]
        result = populated_forest.check_integrity()
        
        assert not result.is_valid
        assert [issue.issue_type for issue in result.issues] == ["index_mismatch"]
    
    def test_detects_orphan_index_entry(self, populated_forest):
        """An index entry unreachable from any root is reported."""
        populated_forest._index[3000] = Node(Account(number=3000, description="Equity"))
        result = populated_forest.check_integrity()
        assert [issue.issue_type for issue in result.issues] == ["orphan_index_entry"]
    
    def test_summary(self, populated_forest):
        """The summary counts errors and names affected accounts."""
        validator = ForestValidator(populated_forest.attachment_policy, populated_forest.sign_convention)
        assert validator.get_summary(populated_forest.check_integrity()) == "All checks passed for 6 accounts."

        del populated_forest._index[1200]
        summary = validator.get_summary(populated_forest.check_integrity())
        assert summary.startswith("1 error(s) in 6 accounts:")
        assert "1200" in summary

    def test_forests_are_independent(self, storage):
        """Separate forests share no state."""
        first = Forest(storage=storage)
        second = Forest(storage=storage)
        first.add_account(1000, "Assets")
        
        assert 1000 in first
        assert 1000 not in second


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
