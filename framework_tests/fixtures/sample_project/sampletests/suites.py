"""Discovery roots over the sample hierarchy."""

from mutineer.discovery import (
    base_class_filter,
    class_name_glob_filter,
    class_name_regex_filter,
    classpath_suite,
    exclude_base_class_filter,
)

from .hierarchy import IntegrationBase, SlowBase


@classpath_suite()
@class_name_glob_filter("sampletests.hierarchy:*Test")
class AllHierarchyTests:
    pass


@classpath_suite(exclude_inner_classes=False)
@class_name_glob_filter("sampletests.hierarchy:*Test")
class AllHierarchyTestsWithInner:
    pass


@classpath_suite()
@class_name_regex_filter(r"sampletests\.suites:.*")
class SelfMatchingSuite:
    pass


@classpath_suite()
@class_name_glob_filter("sampletests.hierarchy:*")
@base_class_filter(IntegrationBase)
@exclude_base_class_filter(SlowBase)
class FastIntegrationTests:
    pass


@classpath_suite()
@class_name_glob_filter("sampletests.hierarchy:*")
@base_class_filter("sampletests.hierarchy:IntegrationBase", "sampletests.hierarchy:SlowBase")
class SlowIntegrationTests:
    pass


@classpath_suite()
@class_name_glob_filter("sampletests.hierarchy:*Test")
@base_class_filter("sampletests.hierarchy:DoesNotExist")
class BrokenBaseSuite:
    pass


@classpath_suite()
class NoNameFilterSuite:
    pass


class NotASuite:
    pass


@classpath_suite()
@class_name_glob_filter("sampletests.hierarchy:Fast*", "sampletests.hierarchy:Nightly*")
@class_name_regex_filter(r"sampletests\.hierarchy:Slow.*")
class MixedPatternSuite:
    pass
