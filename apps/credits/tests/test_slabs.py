from django.core.exceptions import ValidationError
from django.test import TestCase

from apps.credits import slabs
from apps.credits.models import CreditSlab
from core.exceptions import NoApplicableSlabError


class CreditSlabResolverTest(TestCase):
    def setUp(self):
        CreditSlab.objects.create(min_users=1, max_users=50, credits_per_user=10)
        CreditSlab.objects.create(min_users=51, max_users=200, credits_per_user=8)

    def test_resolves_covering_slab(self):
        self.assertEqual(slabs.resolve(30).credits_per_user, 10)
        self.assertEqual(slabs.resolve(51).credits_per_user, 8)
        self.assertEqual(slabs.resolve(200).credits_per_user, 8)

    def test_no_slab_raises(self):
        with self.assertRaises(NoApplicableSlabError) as ctx:
            slabs.resolve(500)
        self.assertEqual(ctx.exception.user_count, 500)
        with self.assertRaises(NoApplicableSlabError):
            slabs.resolve(0)

    def test_inactive_slabs_are_ignored(self):
        CreditSlab.objects.filter(min_users=1).update(is_active=False)
        with self.assertRaises(NoApplicableSlabError):
            slabs.resolve(30)

    def test_lowest_min_users_wins_on_overlap(self):
        CreditSlab.objects.create(min_users=20, max_users=60, credits_per_user=3)
        self.assertEqual(slabs.resolve(30).credits_per_user, 10)
        self.assertEqual(slabs.resolve(55).credits_per_user, 3)

    def test_calculate_credits(self):
        self.assertEqual(slabs.calculate_credits(30), 300)
        self.assertEqual(slabs.calculate_credits(100), 800)

    def test_quote(self):
        result = slabs.quote(120)
        self.assertEqual(result['credits_per_user'], 8)
        self.assertEqual(result['total_credits'], 960)


class CreditSlabMaintenanceTest(TestCase):
    def setUp(self):
        self.slab = slabs.create_slab(min_users=1, max_users=50, credits_per_user=10)

    def test_max_below_min_rejected(self):
        with self.assertRaises(ValidationError):
            slabs.create_slab(min_users=100, max_users=60, credits_per_user=5)

    def test_overlapping_range_rejected(self):
        with self.assertRaises(ValidationError):
            slabs.create_slab(min_users=40, max_users=80, credits_per_user=5)
        self.assertEqual(CreditSlab.objects.count(), 1)

    def test_update_does_not_conflict_with_itself(self):
        slabs.update_slab(self.slab, max_users=60, credits_per_user=9)
        self.slab.refresh_from_db()
        self.assertEqual((self.slab.max_users, self.slab.credits_per_user), (60, 9))

    def test_deactivated_slab_frees_its_range(self):
        slabs.deactivate_slab(self.slab)
        replacement = slabs.create_slab(min_users=1, max_users=100, credits_per_user=7)
        self.assertEqual(slabs.resolve(10), replacement)
