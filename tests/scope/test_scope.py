import pytest

from objjc.ast_nodes import IdentifierExpr
from objjc.output import OutputToken
from objjc.scope import BindingKind, IvarRef, ReceiverTempAllocator, Scope, ScopeKind


def _nested_function_scope() -> tuple[Scope, Scope, Scope]:
    root = Scope(None, ScopeKind.FILE)
    function = Scope(root, ScopeKind.FUNCTION)
    block = Scope(function, ScopeKind.BLOCK)
    return root, function, block


def test_only_file_scope_may_lack_a_parent() -> None:
    with pytest.raises(ValueError, match="Only the file scope"):
        Scope(None, ScopeKind.FUNCTION)


def test_lookup_climbs_to_nearest_binding() -> None:
    root, function, block = _nested_function_scope()
    root.declare("x", BindingKind.FILE_VAR, IdentifierExpr("x"))
    function.declare("x", BindingKind.ARGUMENT, IdentifierExpr("x"))

    binding = block.lookup("x")

    assert binding is not None
    assert binding.kind is BindingKind.ARGUMENT
    assert block.lookup("missing") is None


def test_lookup_local_ignores_file_bindings() -> None:
    root, function, block = _nested_function_scope()
    root.declare("shared", BindingKind.FILE_VAR, None)
    function.declare("local", BindingKind.LOCAL_VAR, None)

    assert block.lookup_local("shared") is None
    found = block.lookup_local("local")
    assert found is not None
    assert found[1] is function


def test_lookup_file_scope_jumps_to_root() -> None:
    root, function, block = _nested_function_scope()
    root.declare("x", BindingKind.GLOBAL_DECL, None)
    function.declare("x", BindingKind.LOCAL_VAR, None)

    binding = block.lookup_file_scope("x")

    assert binding is not None
    assert binding.kind is BindingKind.GLOBAL_DECL


def test_file_only_bindings_are_rejected_below_root() -> None:
    _, function, _ = _nested_function_scope()

    with pytest.raises(ValueError, match="belong to the file scope"):
        function.declare("Foo", BindingKind.CLASS_DECL, None)


def test_var_declarations_are_function_scoped() -> None:
    root, function, block = _nested_function_scope()

    block.declare_var("inner", None)
    Scope(root, ScopeKind.BLOCK).declare_var("outer", None)

    assert function.vars["inner"].kind is BindingKind.LOCAL_VAR
    assert "inner" not in block.vars
    assert root.vars["outer"].kind is BindingKind.FILE_VAR


def test_context_description_names_enclosing_function_or_method() -> None:
    root, function, block = _nested_function_scope()
    function.function_name = "compute"
    method = Scope(Scope(root, ScopeKind.CLASS), ScopeKind.METHOD)
    method.selector = "initWithName:"

    assert block.context_description() == ("function", "compute")
    assert Scope(method, ScopeKind.BLOCK).context_description() == ("method", "initWithName:")
    assert root.context_description() == ("file", "<top level>")


def test_sibling_sends_reuse_temp_and_nested_sends_get_new_one() -> None:
    temps = ReceiverTempAllocator()

    first = temps.acquire()
    temps.release()
    second = temps.acquire()
    nested = temps.acquire()
    temps.release()
    temps.release()

    assert first == "___r1"
    assert second == "___r1"
    assert nested == "___r2"
    assert temps.declared_names() == ["___r1", "___r2"]


def test_temp_release_without_acquire_is_rejected() -> None:
    with pytest.raises(ValueError, match="released more often"):
        ReceiverTempAllocator().release()


def test_only_var_scopes_own_a_temp_allocator() -> None:
    root, function, block = _nested_function_scope()

    assert root.temps is not None
    assert function.temps is not None
    assert block.temps is None
    assert block.var_scope() is function


def test_closed_ivar_refs_merge_into_parent() -> None:
    root, function, block = _nested_function_scope()
    token = OutputToken("self.")
    block.add_ivar_ref(IvarRef(name="count", node=None, ivar=None, receiver_token=token))  # type: ignore[arg-type]

    closed = block.close()
    function.absorb(closed)

    assert block.ivar_refs == {}
    assert [ref.receiver_token for ref in function.ivar_refs["count"]] == [token]


def test_take_ivar_refs_stops_at_var_scope() -> None:
    root = Scope(None, ScopeKind.FILE)
    method = Scope(root, ScopeKind.METHOD)
    block = Scope(method, ScopeKind.BLOCK)
    root.add_ivar_ref(IvarRef(name="x", node=None, ivar=None, receiver_token=None))  # type: ignore[arg-type]
    method.add_ivar_ref(IvarRef(name="x", node=None, ivar=None, receiver_token=None))  # type: ignore[arg-type]
    block.add_ivar_ref(IvarRef(name="x", node=None, ivar=None, receiver_token=None))  # type: ignore[arg-type]

    refs = block.take_ivar_refs("x")

    assert len(refs) == 2
    assert "x" in root.ivar_refs
    assert "x" not in method.ivar_refs


def test_block_scope_shares_receiver_temps_of_its_function() -> None:
    root, function, block = _nested_function_scope()

    assert block.receiver_temps() is function.temps
    assert root.receiver_temps() is root.temps
