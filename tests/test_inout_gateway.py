"""
Tests for the InOut gateway against a scripted InOut API.
"""
import base64
from dataclasses import replace

import httpx
import pytest

from shipment_manager.core.config import settings as app_settings
from shipment_manager.models.error import Violation, ViolationList
from shipment_manager.models.order import PaymentMethod
from shipment_manager.models.provider import ProviderSettings, ProviderSettingsCredentials, Tenant
from shipment_manager.models.shipping import CompanyData, CourierData, EcontCourierOfficeFilters, InOutCourierOfficeFilters
from shipment_manager.models.waybill import (
    BulkWayBillFailure,
    DownloadWayBillRequestData,
    MapWayBillRequestData,
    ShipmentStatusRequestData,
    WaybillStatus,
)
from shipment_manager.modules.shipping.gateways.base import INVALID_CONFIGURATION_MESSAGE
from shipment_manager.modules.shipping.gateways.inout.gateway import API_URL, InOutShippingGateway
from shipment_manager.modules.shipping.gateways.inout.modifiers import (
    InOutCityWayBillDataModifier,
    InOutPhoneWayBillDataModifier,
)
from tests.factories import MockCarrier, make_estimation, make_order

SETTINGS = {"companyId": 12, "courierId": 7}

CITIES = [
    {"CITY_NAME_EN": "Sofia", "CITY_NAME_LOCAL": "София", "POSTAL_CODE": "1000"},
    {"CITY_NAME_EN": "Plovdiv", "CITY_NAME_LOCAL": "Пловдив", "POSTAL_CODE": "4002"},
]


def build_gateway(tenant, carrier, settings=None) -> InOutShippingGateway:
    gateway = InOutShippingGateway(tenant, carrier.transport())
    gateway.set_provider_settings(ProviderSettings("inout", settings or SETTINGS))
    return gateway


def inout_tenant(config) -> Tenant:
    return Tenant(id="tenant-2", apps={"shipping": {"inout": config}})


class TestClientOptions:
    def test_tenant_token(self, tenant):
        carrier = MockCarrier(httpx.Response(200, json=[]))

        build_gateway(tenant, carrier).get_companies()

        assert carrier.requests[0].headers["Authorization"] == "Bearer inout-token"
        assert str(carrier.requests[0].url) == API_URL + "get-user-companies"

    def test_test_mode_uses_sandbox_account(self, bg_address):
        carrier = MockCarrier(httpx.Response(200, json={"price": 5}))
        gateway = build_gateway(inout_tenant({"token": "inout-token", "testMode": True}), carrier)

        gateway.calculate_price(make_estimation(bg_address))

        assert carrier.requests[0].headers["Authorization"] == "Bearer inout-sandbox-token"
        assert carrier.json_body()["companyId"] == 333
        assert gateway.settings.company_id == 12

    def test_missing_token(self):
        carrier = MockCarrier()
        gateway = build_gateway(inout_tenant({"testMode": False}), carrier)

        assert gateway.get_companies() == Violation(INVALID_CONFIGURATION_MESSAGE)
        assert carrier.call_count == 0

    def test_empty_sandbox_token(self, monkeypatch):
        monkeypatch.setattr(app_settings, "INOUT_TEST_TOKEN", "")
        carrier = MockCarrier()
        gateway = build_gateway(inout_tenant({"token": "inout-token", "testMode": True}), carrier)

        assert gateway.get_companies() == Violation(INVALID_CONFIGURATION_MESSAGE)
        assert carrier.call_count == 0


class TestValidateCredentials:
    def test_valid(self, tenant):
        carrier = MockCarrier(httpx.Response(200, json=[{"ID": 1, "NAME": "Store"}]))

        assert build_gateway(tenant, carrier).validate_credentials(ProviderSettingsCredentials(token="fresh")) is None
        request = carrier.requests[0]
        assert request.headers["Authorization"] == "Bearer fresh"
        assert request.url.params["testMode"] == "false"

    @pytest.mark.parametrize("failure", [httpx.Response(401, json={}), httpx.ConnectError("refused")])
    def test_invalid(self, tenant, failure):
        carrier = MockCarrier(failure)

        result = build_gateway(tenant, carrier).validate_credentials(ProviderSettingsCredentials(token="stale"))

        assert result == Violation("Invalid credentials")


class TestDiscovery:
    def test_companies(self, tenant):
        body = [{"ID": 12, "NAME": "Test Store Ltd", "BULSTAT": "204000000", "ADDRESS": "Sofia", "MOL": "I. Petrov"}]
        carrier = MockCarrier(httpx.Response(200, json=body))

        companies = build_gateway(tenant, carrier).get_companies()

        assert companies == [CompanyData(12, "Test Store Ltd", "204000000", "Sofia", "I. Petrov")]

    def test_couriers(self, tenant):
        body = [{"ID": 7, "NAME": "Speedy", "TO_OFFICE": 1, "TO_ADDRESS": 0}]
        carrier = MockCarrier(httpx.Response(200, json=body))

        couriers = build_gateway(tenant, carrier).get_couriers(12)

        assert couriers == [CourierData(7, "Speedy (InOut)", to_office=True, to_address=False)]
        assert str(carrier.requests[0].url) == API_URL + "couriers/12"

    def test_offices_filtered_by_address(self, tenant):
        body = [
            {"ID": 1, "OFFICE_NAME": "Shipka", "ADDRESS": "София, ул. Шипка 3", "CITY_NAME": "София", "POST_CODE": 1000},
            {"ID": 2, "OFFICE_NAME": "Vitosha", "ADDRESS": "София, бул. Витоша 10", "CITY_NAME": "София"},
        ]
        carrier = MockCarrier(httpx.Response(200, json=body), httpx.Response(200, json=body))
        gateway = build_gateway(tenant, carrier)

        latin = gateway.get_courier_offices(InOutCourierOfficeFilters(7, "Shipka"))
        cyrillic = gateway.get_courier_offices(InOutCourierOfficeFilters(7, "Витоша"))

        assert [office.office_id for office in latin] == ["1"]
        assert latin[0].city_code == "1000"
        assert [office.office_id for office in cyrillic] == ["2"]
        assert str(carrier.requests[0].url) == API_URL + "offices-by-courier/7"

    def test_offices_wrong_filters(self, tenant):
        with pytest.raises(TypeError):
            build_gateway(tenant, MockCarrier()).get_courier_offices(EcontCourierOfficeFilters("BGR"))


class TestCalculatePrice:
    def test_delivery_tax_added(self, tenant, bg_address):
        carrier = MockCarrier(httpx.Response(200, json={"price": 5.0}))

        result = build_gateway(tenant, carrier).calculate_price(make_estimation(bg_address, cod_amount=20.0))

        assert result.price == 6.0
        body = carrier.json_body()
        assert body["weight"] == 1.0
        assert body["codAmount"] == 20.0
        assert body["insuranceAmount"] == 0.0
        assert body["courierId"] == 7

    def test_minimum_weight(self, tenant, bg_address):
        carrier = MockCarrier(httpx.Response(200, json={"price": 5.0}))

        build_gateway(tenant, carrier).calculate_price(make_estimation(bg_address, weight=20))

        assert carrier.json_body()["weight"] == 0.1

    def test_currency_conversion(self, tenant, bg_address):
        carrier = MockCarrier(httpx.Response(200, json={"price": 10.0}))
        gateway = build_gateway(tenant, carrier, {**SETTINGS, "currencyConversion": True})

        result = gateway.calculate_price(make_estimation(bg_address, cod_amount=10.0, insurance_amount=100.0))

        assert result.price == pytest.approx(6.1374)
        body = carrier.json_body()
        assert body["codAmount"] == 19.55
        assert body["insuranceAmount"] == 195.52

    def test_request_rejected(self, tenant, bg_address):
        carrier = MockCarrier(httpx.Response(422, json={"error": "weight"}))

        result = build_gateway(tenant, carrier).calculate_price(make_estimation(bg_address))

        assert result == Violation("Gateway invalid request")


class TestCreateWayBill:
    def test_bulgarian_recipient(self, tenant, bg_address):
        carrier = MockCarrier(
            httpx.Response(200, json=CITIES),
            httpx.Response(200, json={"awb": 5550001}),
        )

        result = build_gateway(tenant, carrier).create_way_bill(make_order(bg_address))

        assert result.shipping_number == "5550001"
        assert result.shipping_info == {"reference": "REF-order-1"}
        assert str(carrier.requests[0].url) == API_URL + "get-cities/2"
        body = carrier.json_body(1)
        recipient = body["recipient"]
        assert recipient["countryIsoCode"] == "BG"
        assert recipient["cityName"] == "Пловдив"
        assert recipient["zipCode"] == "4002"
        assert recipient["phoneNumber"] == "+359888123456"
        assert recipient["streetName"] == "Main street"
        assert body["senderId"] == 12
        assert body["awb"]["totalWeight"] == 1.5
        assert body["awb"]["bankRepayment"] == 0.0
        assert body["awb"]["referenceNumber"] == "REF-order-1"

    def test_city_lookup_failure_keeps_zip(self, tenant, bg_address):
        carrier = MockCarrier(
            httpx.Response(500, text="down"),
            httpx.Response(200, json={"awb": 5550001}),
        )

        result = build_gateway(tenant, carrier).create_way_bill(make_order(bg_address))

        assert result.shipping_number == "5550001"
        assert carrier.json_body(1)["recipient"]["zipCode"] == "4000"

    def test_foreign_recipient_skips_city_lookup(self, tenant, za_address):
        carrier = MockCarrier(httpx.Response(200, json={"awb": 5550002}))

        build_gateway(tenant, carrier).create_way_bill(make_order(za_address))

        assert carrier.call_count == 1
        recipient = carrier.json_body()["recipient"]
        assert recipient["countryIsoCode"] == "ZA"
        assert recipient["phoneNumber"] == "0821234567"

    def test_office_delivery(self, tenant, za_address):
        carrier = MockCarrier(httpx.Response(200, json={"awb": 5550002}))

        build_gateway(tenant, carrier).create_way_bill(make_order(replace(za_address, office_id="55")))

        assert carrier.json_body()["recipient"]["streetName"] == "to office: Long Street"

    def test_cash_on_delivery_with_conversion(self, tenant, za_address):
        carrier = MockCarrier(httpx.Response(200, json={"awb": 5550002}))
        gateway = build_gateway(tenant, carrier, {**SETTINGS, "currencyConversion": True})

        gateway.create_way_bill(make_order(za_address, payment_method=PaymentMethod.CASH_ON_DELIVERY.value))

        awb = carrier.json_body()["awb"]
        assert awb["bankRepayment"] == 218.97
        assert awb["declaredValue"] == 215.05

    def test_description_truncated(self, tenant, za_address):
        carrier = MockCarrier(httpx.Response(200, json={"awb": 5550002}))

        build_gateway(tenant, carrier).create_way_bill(make_order(za_address, description="x" * 1500))

        assert len(carrier.json_body()["awb"]["products"]) == 1000

    def test_bulk_keeps_going_after_failure(self, tenant, za_address):
        carrier = MockCarrier(
            httpx.Response(400, json={"error": "address"}),
            httpx.Response(200, json={"awb": 5550003}),
        )
        orders = [make_order(za_address, "o-1"), make_order(za_address, "o-2")]

        results = build_gateway(tenant, carrier).create_bulk_way_bill(orders)

        assert results[0] == BulkWayBillFailure(reference="REF-o-1", message="Gateway invalid request")
        assert results[1].shipping_number == "5550003"
        assert results[1].reference == "REF-o-2"


class TestWayBillFiles:
    def test_download(self, tenant):
        label = base64.b64encode(b"%PDF-1.4 label").decode("ascii")
        carrier = MockCarrier(httpx.Response(200, json={"type": "PDF", "awb_print": label}))

        result = build_gateway(tenant, carrier).download_way_bill(DownloadWayBillRequestData("5550001"))

        assert result.type == "pdf"
        assert result.content == b"%PDF-1.4 label"
        assert str(carrier.requests[0].url) == API_URL + "print/5550001?testMode=false"

    def test_map_way_bills(self, tenant):
        label = base64.b64encode(b"%PDF-1.4 label").decode("ascii")
        carrier = MockCarrier(httpx.Response(200, json={"type": "PDF", "awb_print": label}))

        result = build_gateway(tenant, carrier).map_way_bills([
            MapWayBillRequestData("o-1", "5550001", {"reference": "REF-o-1"}),
        ])

        assert result[0].url == label
        assert result[0].order_id == "o-1"
        assert result[0].reference == "REF-o-1"
        assert result[0].provider == "inout"

    def test_map_way_bills_failure(self, tenant):
        carrier = MockCarrier(httpx.Response(404, json={}))

        result = build_gateway(tenant, carrier).map_way_bills([MapWayBillRequestData("o-1", "5550001")])

        assert isinstance(result, ViolationList)
        assert result.messages() == ["Gateway invalid request"]


class TestShipmentStatus:
    def test_last_status_wins(self, tenant):
        body = [
            {"awb": 1, "statusesHistory": [{"STATUS": "New"}, {"STATUS": "COD paid"}]},
            {"awb": 2, "statusesHistory": [{"STATUS": "New"}, {"STATUS": "In transit"}]},
            {"awb": 3, "errorCode": 404, "statusesHistory": [{"STATUS": "New"}]},
            {"awb": 4, "statusesHistory": []},
            {"awb": 5, "statusesHistory": [{"STATUS": "Teleported"}]},
        ]
        carrier = MockCarrier(httpx.Response(200, json=body))

        result = build_gateway(tenant, carrier).get_shipment_status(ShipmentStatusRequestData(["1", "2", "3", "4", "5"]))

        assert [(s.shipping_number, s.status, s.is_paid) for s in result.data] == [
            ("1", WaybillStatus.DELIVERED, True),
            ("2", WaybillStatus.SHIPPED, False),
        ]
        assert carrier.json_body()["awbs"] == [{"awb": n} for n in ["1", "2", "3", "4", "5"]]

    @pytest.mark.parametrize("native,expected", [
        ("Packed", "pending"),
        ("Warehouse Ruse", "shipped"),
        ("Delivered", "delivered"),
        ("Claim opened", "delivered"),
        ("Rejected by courier", "canceled"),
        ("Teleported", ""),
    ])
    def test_status_mapping(self, tenant, native, expected):
        assert build_gateway(tenant, MockCarrier()).get_status_mapping(native) == expected


class TestWayBillDataModifiers:
    @pytest.mark.parametrize("city,expected", [
        ("гр. Пловдив", "Пловдив"),
        ("гр Пловдив", "Пловдив"),
        ("град София", "София"),
        ("с. Равда", "Равда"),
        ("село Равда", "Равда"),
        ("Гривица", "Гривица"),
    ])
    def test_city_prefix_removed(self, city, expected):
        data = {"recipient": {"cityName": city}}

        InOutCityWayBillDataModifier()(data)

        assert data["recipient"]["cityName"] == expected

    @pytest.mark.parametrize("phone,country,expected", [
        ("0888 123 456", "BG", "+359888123456"),
        ("00359 888 123 456", "BG", "+359888123456"),
        ("+359 (888) 123-456", "BG", "+359888123456"),
        ("082 123 4567", "ZA", "0821234567"),
    ])
    def test_phone_normalized(self, phone, country, expected):
        data = {"recipient": {"phoneNumber": phone, "countryIsoCode": country}}

        InOutPhoneWayBillDataModifier()(data)

        assert data["recipient"]["phoneNumber"] == expected


class TestUnexpectedResponses:
    def test_price_missing(self, tenant, bg_address):
        carrier = MockCarrier(httpx.Response(200, json={"error": None}))

        result = build_gateway(tenant, carrier).calculate_price(make_estimation(bg_address))

        assert result == Violation("Gateway invalid response")

    def test_awb_missing(self, tenant, za_address):
        carrier = MockCarrier(httpx.Response(200, json={}))

        assert build_gateway(tenant, carrier).create_way_bill(make_order(za_address)) == Violation("Gateway invalid response")

    def test_label_missing(self, tenant):
        carrier = MockCarrier(httpx.Response(200, json={"type": "PDF"}))

        result = build_gateway(tenant, carrier).download_way_bill(DownloadWayBillRequestData("5550001"))

        assert result == Violation("Gateway invalid response")

    def test_bad_label_encoding(self, tenant):
        carrier = MockCarrier(httpx.Response(200, json={"type": "PDF", "awb_print": "abc"}))

        result = build_gateway(tenant, carrier).download_way_bill(DownloadWayBillRequestData("5550001"))

        assert result == Violation("Gateway invalid response")

    @pytest.mark.parametrize("call", [
        lambda gateway: gateway.get_companies(),
        lambda gateway: gateway.get_couriers(12),
        lambda gateway: gateway.get_courier_offices(InOutCourierOfficeFilters(7)),
        lambda gateway: gateway.get_shipment_status(ShipmentStatusRequestData(["1"])),
    ])
    def test_listing_not_a_list(self, tenant, call):
        carrier = MockCarrier(httpx.Response(200, json={"message": "Unauthorized"}))

        assert call(build_gateway(tenant, carrier)) == Violation("Gateway invalid response")

    def test_malformed_companies_skipped(self, tenant):
        body = ["junk", {"NAME": "No id"}, {"ID": 12, "NAME": None}]
        carrier = MockCarrier(httpx.Response(200, json=body))

        companies = build_gateway(tenant, carrier).get_companies()

        assert companies == [CompanyData(12, "", "", "", "")]

    def test_malformed_history_skipped(self, tenant):
        body = [
            "junk",
            {"awb": 6, "statusesHistory": ["junk"]},
            {"statusesHistory": [{"STATUS": "New"}]},
            {"awb": 7, "statusesHistory": [{"STATUS": "Delivered"}]},
        ]
        carrier = MockCarrier(httpx.Response(200, json=body))

        result = build_gateway(tenant, carrier).get_shipment_status(ShipmentStatusRequestData(["6", "7"]))

        assert [(s.shipping_number, s.status, s.is_paid) for s in result.data] == [
            ("7", WaybillStatus.DELIVERED, True),
        ]

    def test_malformed_cities_keep_zip(self, tenant, bg_address):
        carrier = MockCarrier(
            httpx.Response(200, json=["junk", {"CITY_NAME_EN": "Plovdiv"}]),
            httpx.Response(200, json={"awb": 5550001}),
        )

        build_gateway(tenant, carrier).create_way_bill(make_order(bg_address))

        assert carrier.json_body(1)["recipient"]["zipCode"] == "4000"

    def test_unknown_country(self, tenant, za_address):
        carrier = MockCarrier()

        result = build_gateway(tenant, carrier).create_way_bill(make_order(replace(za_address, country="XKX")))

        assert result == Violation("Unknown country code: XKX", path="country")
        assert carrier.call_count == 0
