"""BDD tests for scanning at the pack station."""

from fulfillment.fulfillment.completion import UpdateFulfillment
from fulfillment.fulfillment.scanning import OUTCOME_UNMATCHED, RecordScan
from fulfillment.fulfillment.starting import get_fulfillment
from fulfillment.packaging.registration import RegisterPackagingType
from protean import current_domain
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, scenarios, then, when

scenarios("features/pack_station.feature")


def _scan(order_id, code):
    return current_domain.process(RecordScan(order_id=order_id, code=code), asynchronous=False)


@given(parsers.cfparse('the packaging type "{sku}" is stocked'))
def packaging_stocked(sku):
    current_domain.process(RegisterPackagingType(sku=sku, name=f"{sku} box"), asynchronous=False)


@when(parsers.cfparse('the packer scans "{code}" {times:d} times'), target_fixture="scan_result")
def scan_repeatedly(order_id, code, times):
    result = None
    for _ in range(times):
        result = _scan(order_id, code)
    return result


@when(parsers.cfparse('the packer scans "{code}"'), target_fixture="scan_result")
def scan(order_id, code):
    return _scan(order_id, code)


@when(parsers.cfparse('the packer tries to scan "{code}"'))
def try_scan(order_id, code, error):
    try:
        _scan(order_id, code)
    except ValidationError as exc:
        error["exc"] = exc


@when("the packer completes the fulfillment")
def complete(order_id):
    current_domain.process(UpdateFulfillment(order_id=order_id, status="completed"), asynchronous=False)


@then(parsers.cfparse('the scan reports "{message}"'))
def scan_reports(scan_result, message):
    assert scan_result.message == message


@then("the scan is reported as unmatched")
def scan_unmatched(scan_result):
    assert scan_result.outcome == OUTCOME_UNMATCHED
    assert scan_result.matched is False


@then(parsers.cfparse('the scan is rejected with "{message}"'))
def scan_rejected(error, message):
    assert error["exc"] is not None
    assert message in str(error["exc"].messages)


@then("the order is not fully scanned")
def not_fully_scanned(order_id):
    assert get_fulfillment(order_id).is_fully_scanned() is False


@then(parsers.cfparse("{count:d} units are scanned toward the order"))
def units_scanned(order_id, count):
    ff = get_fulfillment(order_id)
    assert sum(ff.scanned_quantity(line.order_item_id) for line in ff.lines) == count


@then("no scans are waiting for a box")
def nothing_unassigned(order_id):
    assert get_fulfillment(order_id).unassigned_scans() == []
