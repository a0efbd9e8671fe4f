import asyncio
import unittest
from decimal import Decimal

from ledger_money.assets.registry import AssetRegistry
from ledger_money.assets.sources import StaticAssetSource
from ledger_money.constants import MAX_AMOUNT_DIGITS
from ledger_money.errors import AssetNotFound, IncompatibleAsset, InvalidArgument, MoneyError
from ledger_money.money.money import Money


class MoneyTestCase(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.registry = AssetRegistry(StaticAssetSource())
        self.waves, self.eight, self.four, self.zero = await asyncio.gather(
            self.registry.resolve({"id": "WAVES", "name": "Waves", "precision": 8}),
            self.registry.resolve({"id": "EIGHT", "name": "Eight Precision Token", "precision": 8}),
            self.registry.resolve({"id": "FOUR", "name": "Four Precision Token", "precision": 4}),
            self.registry.resolve({"id": "ZERO", "name": "Zero Precision Token", "precision": 0}),
        )


class TestCreatingInstances(MoneyTestCase):
    async def test_created_from_tokens(self):
        money = await Money.from_tokens("10", self.waves)
        self.assertTrue(Money.is_money(money))

    async def test_created_from_coins(self):
        money = await Money.from_coins("1000000000", self.waves)
        self.assertTrue(Money.is_money(money))

    async def test_created_with_asset_id(self):
        from_coins, from_tokens = await asyncio.gather(
            Money.from_coins("1000", self.waves.identifier, self.registry),
            Money.from_tokens("1000", self.waves.identifier, self.registry),
        )
        self.assertTrue(Money.is_money(from_coins))
        self.assertTrue(Money.is_money(from_tokens))
        self.assertIs(from_coins.asset, self.waves)
        self.assertIs(from_tokens.asset, self.waves)

    async def test_unknown_asset_id_fails_on_await(self):
        pending = Money.from_tokens("1", "UNKNOWN", self.registry)
        with self.assertRaises(AssetNotFound):
            await pending

    def test_is_money_rejects_other_values(self):
        for value in (None, "10 WAVES", Decimal("10"), {"assetId": "WAVES", "tokens": "1"}):
            self.assertFalse(Money.is_money(value))


class TestCoreFunctionality(MoneyTestCase):
    async def test_tokens_to_coins_and_back(self):
        self.assertEqual((await Money.from_coins("100000000", self.waves)).to_tokens(), "1.00000000")
        self.assertEqual((await Money.from_tokens("1", self.waves)).to_coins(), "100000000")
        self.assertEqual((await Money.from_coins("10000", self.four)).to_tokens(), "1.0000")
        self.assertEqual((await Money.from_tokens("1", self.four)).to_coins(), "10000")

    async def test_drops_insignificant_digits(self):
        self.assertEqual((await Money.from_tokens("1.123", self.zero)).to_coins(), "1")
        self.assertEqual((await Money.from_tokens("10.1234567890", self.waves)).to_coins(), "1012345678")
        self.assertEqual((await Money.from_tokens("0.99999", self.four)).to_tokens(), "0.9999")

    async def test_negative_tokens_truncate_toward_zero(self):
        money = await Money.from_tokens("-1.23456", self.four)
        self.assertEqual(money.to_coins(), "-12345")
        self.assertEqual(money.to_tokens(), "-1.2345")

    async def test_tokens_are_zero_padded_to_precision(self):
        self.assertEqual((await Money.from_tokens("1.5", self.waves)).to_tokens(), "1.50000000")
        self.assertEqual((await Money.from_tokens("7", self.zero)).to_tokens(), "7")

    async def test_round_trips(self):
        cases = [("123.456", self.four), ("0.00000001", self.waves), ("-42", self.zero)]
        for tokens, asset in cases:
            money = await Money.from_tokens(tokens, asset)
            self.assertEqual((await Money.from_coins(money.to_coins(), asset)).to_coins(), money.to_coins())
            self.assertEqual((await Money.from_tokens(money.to_tokens(), asset)).to_tokens(), money.to_tokens())

    async def test_coins_accept_integral_notations(self):
        self.assertEqual((await Money.from_coins("1e3", self.four)).to_coins(), "1000")
        self.assertEqual((await Money.from_coins("5.0", self.four)).to_coins(), "5")

    async def test_large_amounts_stay_exact(self):
        money = await Money.from_tokens("98765432109876543210.12345678", self.waves)
        self.assertEqual(money.to_coins(), "9876543210987654321012345678")
        total = money.add(money)
        self.assertEqual(total.to_tokens(), "197530864219753086420.24691356")

    async def test_clone_with_tokens_and_coins(self):
        money = await Money.from_tokens("1", self.four)
        self.assertEqual(money.clone_with_tokens("2.55555").to_coins(), "25555")
        self.assertEqual(money.clone_with_coins("7").to_tokens(), "0.0007")
        self.assertIs(money.clone_with_coins("7").asset, self.four)


class TestArithmeticOperations(MoneyTestCase):
    async def test_add_same_asset(self):
        a, b = await asyncio.gather(
            Money.from_tokens("1.1", self.waves), Money.from_tokens("1.9", self.waves)
        )
        result = a.add(b)
        self.assertTrue(Money.is_money(result))
        self.assertEqual(result.to_tokens(), "3.00000000")
        self.assertEqual((a + b).to_tokens(), "3.00000000")
        # Operands are untouched
        self.assertEqual(a.to_tokens(), "1.10000000")

    async def test_sub_same_asset(self):
        a, b = await asyncio.gather(
            Money.from_tokens("3", self.waves), Money.from_tokens("1.1", self.waves)
        )
        result = a.sub(b)
        self.assertTrue(Money.is_money(result))
        self.assertEqual(result.to_tokens(), "1.90000000")
        self.assertEqual((a - b).to_tokens(), "1.90000000")
        self.assertEqual(result.add(b), a)

    async def test_sub_may_go_negative(self):
        a, b = await asyncio.gather(
            Money.from_tokens("1", self.four), Money.from_tokens("2.5", self.four)
        )
        result = a - b
        self.assertTrue(result.is_negative())
        self.assertEqual(result.to_tokens(), "-1.5000")
        self.assertEqual(abs(result).to_tokens(), "1.5000")
        self.assertEqual((-result).to_tokens(), "1.5000")

    async def test_different_assets_raise(self):
        one, two = await asyncio.gather(
            Money.from_tokens("1", self.waves), Money.from_tokens("1", self.four)
        )
        with self.assertRaises(IncompatibleAsset):
            one.add(two)
        with self.assertRaises(IncompatibleAsset):
            one.sub(two)
        with self.assertRaises(IncompatibleAsset):
            one + two

    async def test_same_precision_different_assets_raise(self):
        one, two = await asyncio.gather(
            Money.from_tokens("1", self.waves), Money.from_tokens("1", self.eight)
        )
        with self.assertRaises(IncompatibleAsset) as ctx:
            one.add(two)
        self.assertEqual((ctx.exception.left, ctx.exception.right), ("WAVES", "EIGHT"))

    async def test_value_equal_descriptors_are_compatible(self):
        from ledger_money.model import AssetDescriptor

        copy = AssetDescriptor("WAVES", "Waves", 8)
        a = await Money.from_tokens("1", self.waves)
        b = await Money.from_tokens("2", copy)
        self.assertEqual(a.add(b).to_tokens(), "3.00000000")

    async def test_non_money_operand(self):
        money = await Money.from_tokens("1", self.waves)
        with self.assertRaises(InvalidArgument):
            money.add(Decimal("1"))
        with self.assertRaises(TypeError):
            money + 1


class TestComparison(MoneyTestCase):
    async def test_ordering(self):
        small, big = await asyncio.gather(
            Money.from_tokens("1", self.four), Money.from_tokens("2", self.four)
        )
        self.assertTrue(small.lt(big))
        self.assertTrue(small.lte(big))
        self.assertTrue(big.gt(small))
        self.assertTrue(big.gte(small))
        self.assertTrue(small < big <= big)
        self.assertFalse(small.eq(big))
        self.assertTrue(small.eq(small.clone_with_tokens("1")))

    async def test_ordering_across_assets_raises(self):
        a, b = await asyncio.gather(
            Money.from_tokens("1", self.waves), Money.from_tokens("1", self.four)
        )
        with self.assertRaises(IncompatibleAsset):
            a.lt(b)
        with self.assertRaises(IncompatibleAsset):
            a < b
        with self.assertRaises(IncompatibleAsset):
            a.eq(b)
        self.assertNotEqual(a, b)

    async def test_equality_and_hashing(self):
        a = await Money.from_tokens("1", self.four)
        b = await Money.from_coins("10000", self.four)
        self.assertEqual(a, b)
        self.assertEqual(len({a, b}), 1)
        self.assertTrue(a.is_positive())
        self.assertTrue(a.sub(b).is_zero())


class TestConversions(MoneyTestCase):
    async def test_four_to_eight(self):
        money = await Money.from_tokens("100", self.four)
        self.assertEqual(Money.convert(money, self.waves, 4).to_tokens(), "400.00000000")

    async def test_eight_to_four(self):
        money = await Money.from_tokens("100", self.waves)
        self.assertEqual(Money.convert(money, self.four, 0.25).to_tokens(), "25.0000")

    async def test_eight_to_eight(self):
        money = await Money.from_tokens("100", self.waves)
        self.assertEqual(Money.convert(money, self.eight, 2).to_tokens(), "200.00000000")

    async def test_same_asset_returns_existing_instance(self):
        money = await Money.from_tokens("100", self.waves)
        changed = Money.convert(money, self.waves, 2)
        self.assertEqual(changed.to_tokens(), "100.00000000")
        self.assertIs(changed, money)

    async def test_conversion_truncates(self):
        money = await Money.from_tokens("1", self.waves)
        self.assertEqual(Money.convert(money, self.four, "0.33333333").to_tokens(), "0.3333")
        self.assertEqual(Money.convert(money, self.zero, Decimal("2.9")).to_tokens(), "2")

    async def test_float_rates_use_their_decimal_repr(self):
        money = await Money.from_tokens("3", self.waves)
        # 3 * 0.1 is 0.30000000000000004 in binary floating point
        self.assertEqual(money.convert_to(self.eight, 0.1).to_tokens(), "0.30000000")

    async def test_invalid_rates(self):
        money = await Money.from_tokens("1", self.waves)
        for rate in (True, float("nan"), "abc", None):
            with self.assertRaises(InvalidArgument):
                Money.convert(money, self.four, rate)

    async def test_target_must_be_a_descriptor(self):
        money = await Money.from_tokens("1", self.waves)
        with self.assertRaises(InvalidArgument):
            Money.convert(money, "FOUR", 1)

    async def test_big_number_from_tokens(self):
        money = await Money.from_tokens("1.123", self.waves)
        coins = money.get_coins()
        self.assertIsInstance(coins, Decimal)
        self.assertEqual(format(coins, "f"), "112300000")
        tokens = money.get_tokens()
        self.assertIsInstance(tokens, Decimal)
        self.assertEqual(tokens, Decimal("1.123"))
        self.assertEqual(money.to_tokens(), "1.12300000")

    async def test_big_number_from_coins(self):
        money = await Money.from_coins("100000000", self.waves)
        self.assertEqual(money.get_coins(), Decimal("100000000"))
        self.assertEqual(money.get_tokens(), Decimal("1"))

    async def test_to_json(self):
        money = await Money.from_tokens("1000", self.waves)
        self.assertEqual(money.to_json(), {"assetId": "WAVES", "tokens": "1000.00000000"})

    async def test_to_string(self):
        money = await Money.from_tokens("1000", self.waves)
        self.assertEqual(str(money), "1000.00000000 WAVES")
        self.assertEqual(repr(money), "Money(1000.00000000, WAVES)")


class TestPlannedFailures(MoneyTestCase):
    def test_numeric_value_raises_immediately(self):
        for value in (10, 10.5, Decimal("10"), True, None):
            with self.assertRaises(InvalidArgument):
                Money.from_coins(value, self.waves)
            with self.assertRaises(InvalidArgument):
                Money.from_tokens(value, self.waves)

    def test_fractional_coins_raise_immediately(self):
        with self.assertRaises(InvalidArgument):
            Money.from_coins("1.5", self.waves)

    def test_malformed_strings_raise_immediately(self):
        for value in ("", "ten", "1,000", "NaN"):
            with self.assertRaises(InvalidArgument):
                Money.from_tokens(value, self.waves)

    def test_oversized_amounts_raise_immediately(self):
        for value in ("1e995", "1e999999999", "1" * 401, "0." + "1" * 401):
            with self.assertRaises(InvalidArgument):
                Money.from_tokens(value, self.waves)
        with self.assertRaises(InvalidArgument):
            Money.from_coins("1e1000", self.waves)

    async def test_oversized_rate_raises_library_error(self):
        money = await Money.from_tokens("1", self.waves)
        for rate in (Decimal("1e999999"), "1e500", 10 ** 500):
            with self.assertRaises(MoneyError):
                Money.convert(money, self.four, rate)

    async def test_largest_amounts_stay_exact(self):
        nines = "9" * (MAX_AMOUNT_DIGITS - 1)
        money = await Money.from_tokens(nines, self.eight)
        self.assertEqual(money.to_coins(), nines + "0" * 8)

        converted = Money.convert(money, self.four, nines)
        self.assertEqual(len(converted.to_coins()), 2 * len(nines) + 4)
        self.assertTrue(converted.to_coins().endswith("0001" + "0" * 4))

    def test_identifier_without_registry_raises_immediately(self):
        with self.assertRaises(InvalidArgument):
            Money.from_tokens("1", "WAVES")

    def test_invalid_asset_argument_raises_immediately(self):
        with self.assertRaises(InvalidArgument):
            Money.from_tokens("1", 42, self.registry)

    async def test_clone_rejects_numbers(self):
        money = await Money.from_tokens("1", self.waves)
        with self.assertRaises(InvalidArgument):
            money.clone_with_tokens(1)
        with self.assertRaises(InvalidArgument):
            money.clone_with_coins("0.5")


if __name__ == "__main__":
    unittest.main()
