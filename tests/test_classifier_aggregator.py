"""
Tests for the Dependency Classifier and Aggregator.

These tests verify:
1. Each declaration kind becomes the right entry type
2. Offline mode drops external artifacts only
3. Companion paths follow the download flags
4. Aggregation puts directory outputs first, then scopes in fixed order
5. Structurally equal entries appear once, at their first position
6. Module references refuse to read names that are not final
"""

from pathlib import Path

import pytest

from jdevmodel.domain import (
    ArtifactId,
    ExternalDependency,
    FileDependency,
    FileReference,
    LibraryReference,
    ModuleReference,
    ModuleSettings,
    NameOrderError,
    ProjectDependency,
    ProjectTree,
    ResolvedArtifact,
    Scope,
    ScopeDeclaration,
    TreeStructureError,
)
from jdevmodel.naming.deduper import dedupe
from jdevmodel.paths import PathAnchorTable
from jdevmodel.resolution.aggregator import aggregate, aggregate_tree, unique_entries
from jdevmodel.resolution.classifier import classify


# =============================================================================
# TEST FIXTURES
# =============================================================================

def make_tree(module_dir: Path, settings: ModuleSettings = ModuleSettings()):
    """Root plus one child module anchored at `module_dir`."""
    tree = ProjectTree()
    root = tree.add_node("root")
    node = tree.add_node(
        "app",
        parent=root,
        anchors=PathAnchorTable({"MODULE_DIR": module_dir}),
        settings=settings,
    )
    return tree, root, node


def make_artifact(repo: Path, name: str, sources: bool = True, docs: bool = True):
    return ResolvedArtifact(
        id=ArtifactId("com.example", name, "1.0"),
        file=repo / f"{name}.jar",
        source_file=repo / f"{name}-sources.jar" if sources else None,
        doc_file=repo / f"{name}-javadoc.jar" if docs else None,
    )


# =============================================================================
# CLASSIFICATION TESTS
# =============================================================================

class TestClassify:
    """Test per-declaration classification."""

    def test_project_dependency_becomes_module_reference(self, tmp_path):
        tree, root, node = make_tree(tmp_path)
        dedupe(tree)

        entries = classify(tree, node, Scope.COMPILE, [ProjectDependency(root)])
        assert entries == [ModuleReference(target_name="root", scope=Scope.COMPILE)]

    def test_module_reference_uses_deduplicated_name(self, tmp_path):
        """The target name is read after deduplication rewrote it."""
        tree = ProjectTree()
        root = tree.add_node("root")
        core = tree.add_node("core", parent=root)
        app = tree.add_node("app", parent=root)
        core_util = tree.add_node("util", parent=core)
        tree.add_node("util", parent=app)
        dedupe(tree)

        entries = classify(tree, app, Scope.COMPILE, [ProjectDependency(core_util)])
        assert entries[0].target_name == "core-util"

    def test_module_reference_before_dedupe_is_refused(self, tmp_path):
        tree, root, node = make_tree(tmp_path)
        with pytest.raises(NameOrderError):
            classify(tree, node, Scope.COMPILE, [ProjectDependency(root)])

    def test_module_reference_outside_tree_is_refused(self, tmp_path):
        tree, _, node = make_tree(tmp_path)
        other = ProjectTree()
        stranger = other.add_node("stranger")
        dedupe(tree)

        with pytest.raises(TreeStructureError):
            classify(tree, node, Scope.COMPILE, [ProjectDependency(stranger)])

    def test_external_artifact_carries_version_and_paths(self, tmp_path):
        tree, _, node = make_tree(tmp_path, ModuleSettings(download_sources=True, download_docs=True))
        artifact = make_artifact(tmp_path / "repo", "guava")

        [entry] = classify(tree, node, Scope.RUNTIME, [ExternalDependency(artifact)])

        assert isinstance(entry, LibraryReference)
        assert entry.path.text == "$MODULE_DIR$/repo/guava.jar"
        assert entry.source_path.text == "$MODULE_DIR$/repo/guava-sources.jar"
        assert entry.doc_path.text == "$MODULE_DIR$/repo/guava-javadoc.jar"
        assert entry.version_id == ArtifactId("com.example", "guava", "1.0")
        assert entry.scope is Scope.RUNTIME

    def test_companions_follow_download_flags(self, tmp_path):
        tree, _, node = make_tree(tmp_path, ModuleSettings(download_sources=False, download_docs=False))
        artifact = make_artifact(tmp_path, "guava")

        [entry] = classify(tree, node, Scope.COMPILE, [ExternalDependency(artifact)])
        assert entry.source_path is None
        assert entry.doc_path is None
        assert entry.version_id is not None

    def test_missing_companions_stay_empty(self, tmp_path):
        tree, _, node = make_tree(tmp_path, ModuleSettings(download_sources=True, download_docs=True))
        artifact = make_artifact(tmp_path, "bare", sources=False, docs=False)

        [entry] = classify(tree, node, Scope.COMPILE, [ExternalDependency(artifact)])
        assert entry.source_path is None
        assert entry.doc_path is None

    def test_local_file_has_no_version_or_companions(self, tmp_path):
        """Scenario: a local file dependency is a bare library reference."""
        tree, _, node = make_tree(tmp_path)
        [entry] = classify(tree, node, Scope.COMPILE, [FileDependency(tmp_path / "libs" / "x.jar")])

        assert isinstance(entry, LibraryReference)
        assert isinstance(entry, FileReference)
        assert entry.path.text == "$MODULE_DIR$/libs/x.jar"
        assert entry.version_id is None
        assert entry.source_path is None
        assert entry.doc_path is None

    def test_offline_skips_external_artifacts_only(self, tmp_path):
        tree, root, node = make_tree(tmp_path, ModuleSettings(offline=True))
        dedupe(tree)
        declarations = [
            ExternalDependency(make_artifact(tmp_path, "guava")),
            FileDependency(tmp_path / "x.jar"),
            ProjectDependency(root),
        ]

        entries = classify(tree, node, Scope.COMPILE, declarations)

        assert len(entries) == 2
        assert isinstance(entries[0], FileReference)
        assert isinstance(entries[1], ModuleReference)

    def test_offline_never_emits_version_identity(self, tmp_path):
        tree, _, node = make_tree(tmp_path, ModuleSettings(offline=True))
        declarations = [ExternalDependency(make_artifact(tmp_path, f"lib{i}")) for i in range(3)]
        declarations.append(FileDependency(tmp_path / "local.jar"))

        entries = classify(tree, node, Scope.COMPILE, declarations)
        assert all(e.version_id is None for e in entries)

    def test_input_order_is_preserved(self, tmp_path):
        tree, _, node = make_tree(tmp_path)
        declarations = [FileDependency(tmp_path / name) for name in ("c.jar", "a.jar", "b.jar")]

        entries = classify(tree, node, Scope.COMPILE, declarations)
        assert [e.path.text for e in entries] == [
            "$MODULE_DIR$/c.jar", "$MODULE_DIR$/a.jar", "$MODULE_DIR$/b.jar",
        ]

    def test_unknown_declaration_type(self, tmp_path):
        tree, _, node = make_tree(tmp_path)
        with pytest.raises(TypeError):
            classify(tree, node, Scope.COMPILE, ["not-a-declaration"])


# =============================================================================
# AGGREGATION TESTS
# =============================================================================

class TestAggregate:
    """Test per-node aggregation."""

    def test_compile_scope_subtraction_end_to_end(self, tmp_path):
        """Scenario: compile add = {A, B}, subtract = {B} -> one entry for A."""
        tree, _, node = make_tree(tmp_path)
        a = FileDependency(tmp_path / "a.jar")
        b = FileDependency(tmp_path / "b.jar")
        node.declare(Scope.COMPILE, ScopeDeclaration(add=[a, b], subtract=[b]))
        dedupe(tree)

        entries = aggregate(tree, node)
        assert len(entries) == 1
        assert entries[0].path.text == "$MODULE_DIR$/a.jar"
        assert entries[0].scope is Scope.COMPILE

    def test_missing_output_dir_is_filtered(self, tmp_path):
        """Scenario: a missing output directory is absent, an existing one present."""
        tree, _, node = make_tree(tmp_path)
        existing = tmp_path / "build" / "classes"
        existing.mkdir(parents=True)
        node.add_output_dir(Scope.RUNTIME, existing)
        node.add_output_dir(Scope.RUNTIME, tmp_path / "build" / "missing")
        dedupe(tree)

        entries = aggregate(tree, node)
        assert [e.path.text for e in entries] == ["$MODULE_DIR$/build/classes"]

    def test_output_file_that_is_not_a_directory_is_filtered(self, tmp_path):
        tree, _, node = make_tree(tmp_path)
        plain = tmp_path / "classes.txt"
        plain.write_text("not a directory")
        node.add_output_dir(Scope.RUNTIME, plain)
        dedupe(tree)

        assert aggregate(tree, node) == []

    def test_output_dirs_ignore_offline(self, tmp_path):
        tree, _, node = make_tree(tmp_path, ModuleSettings(offline=True))
        (tmp_path / "out").mkdir()
        node.add_output_dir(Scope.TEST, tmp_path / "out")
        dedupe(tree)

        [entry] = aggregate(tree, node)
        assert entry == LibraryReference(path=node.anchors.resolve(tmp_path / "out"), scope=Scope.TEST)

    def test_outputs_first_then_scopes_in_fixed_order(self, tmp_path):
        tree, root, node = make_tree(tmp_path)
        (tmp_path / "out").mkdir()
        node.add_output_dir(Scope.TEST, tmp_path / "out")
        test_lib = FileDependency(tmp_path / "junit.jar")
        compile_lib = FileDependency(tmp_path / "api.jar")
        provided_lib = FileDependency(tmp_path / "servlet.jar")

        # Declared in reverse order on purpose
        node.declare(Scope.TEST, ScopeDeclaration(add=[test_lib]))
        node.declare(Scope.COMPILE, ScopeDeclaration(add=[compile_lib, ProjectDependency(root)]))
        node.declare(Scope.PROVIDED, ScopeDeclaration(add=[provided_lib]))
        dedupe(tree)

        entries = aggregate(tree, node)
        assert [(type(e).__name__, e.scope) for e in entries] == [
            ("LibraryReference", Scope.TEST),
            ("FileReference", Scope.PROVIDED),
            ("FileReference", Scope.COMPILE),
            ("ModuleReference", Scope.COMPILE),
            ("FileReference", Scope.TEST),
        ]

    def test_structural_duplicates_collapse_to_first(self, tmp_path):
        """Two declarations of the same file in one scope give one entry."""
        tree, _, node = make_tree(tmp_path)
        first = FileDependency(tmp_path / "a.jar")
        second = FileDependency(tmp_path / "a.jar")
        other = FileDependency(tmp_path / "b.jar")
        node.declare(Scope.COMPILE, ScopeDeclaration(add=[first, other, second]))
        dedupe(tree)

        entries = aggregate(tree, node)
        assert [e.path.text for e in entries] == ["$MODULE_DIR$/a.jar", "$MODULE_DIR$/b.jar"]

    def test_same_file_in_two_scopes_is_kept_twice(self, tmp_path):
        """Uniqueness includes the scope."""
        tree, _, node = make_tree(tmp_path)
        node.declare(Scope.COMPILE, ScopeDeclaration(add=[FileDependency(tmp_path / "a.jar")]))
        node.declare(Scope.TEST, ScopeDeclaration(add=[FileDependency(tmp_path / "a.jar")]))
        dedupe(tree)

        assert len(aggregate(tree, node)) == 2

    def test_malformed_scope_contributes_nothing(self, tmp_path):
        tree, _, node = make_tree(tmp_path)
        node.declare(Scope.COMPILE, ScopeDeclaration(add=None, subtract=None))
        dedupe(tree)

        assert aggregate(tree, node) == []

    def test_aggregate_tree_covers_every_node(self, tmp_path):
        tree, root, node = make_tree(tmp_path)
        dedupe(tree)
        result = aggregate_tree(tree)
        assert list(result) == [root.index, node.index]

    def test_unique_entries_keeps_first_occurrence_order(self, tmp_path):
        a = ModuleReference("a", Scope.COMPILE)
        b = ModuleReference("b", Scope.COMPILE)
        assert unique_entries([b, a, b, a]) == [b, a]
