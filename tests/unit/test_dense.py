import numpy as np
import pytest

from seqnet.core.backprop import Backprop
from seqnet.core.data import DMatrix
from seqnet.core.dense import Dense
from seqnet.core.types import LayerContext
from seqnet.errors import LayerError, NotInitializedError, ShapeError


def _layer(weights=((1.0, 2.0), (3.0, 4.0)), biases=(0.0, 0.0)):
    return Dense(weights=np.array(weights), biases=np.array(biases)).initialize()


def test_initialize_draws_seeded_weights():
    layer = Dense(rows=3, columns=2, seed=7).initialize()
    again = Dense(rows=3, columns=2, seed=7).initialize()
    assert layer.weights.shape == (3, 2)
    assert np.array_equal(layer.weights, again.weights)
    assert np.all(np.abs(layer.weights) <= 1.0)
    assert np.array_equal(layer.biases, np.zeros((3, 1)))


def test_unseeded_layers_draw_distinct_weights():
    first = Dense(rows=4, columns=4).initialize()
    second = Dense(rows=4, columns=4).initialize()
    assert not np.array_equal(first.weights, second.weights)


def test_initialize_infers_dims_from_neighbours():
    previous = Dense(rows=3, columns=2)
    layer = Dense(rows=1).initialize(LayerContext(previous_layer=previous))
    assert (layer.rows, layer.columns) == (1, 3)

    following = Dense(rows=1, columns=4)
    layer = Dense(columns=2).initialize(LayerContext(next_layer=following))
    assert (layer.rows, layer.columns) == (4, 2)

    layer = Dense(weights=[[1.0, 2.0], [3.0, 4.0], [5.0, 6.0]]).initialize()
    assert (layer.rows, layer.columns) == (3, 2)


def test_initialize_failures():
    with pytest.raises(LayerError):
        Dense().initialize()
    with pytest.raises(ShapeError):
        Dense(rows=2, columns=2, weights=[[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]]).initialize()
    with pytest.raises(ShapeError):
        Dense(rows=2, columns=2, biases=[1.0, 2.0, 3.0]).initialize()


def test_feedforward_computes_affine_map_and_caches():
    layer = _layer(biases=(1.0, -1.0))
    fed, output = layer.feedforward([1.0, 1.0])
    assert output == DMatrix(np.array([[4.0], [6.0]]))
    assert fed.input == DMatrix(np.array([[1.0], [1.0]]))
    assert fed.output is output
    assert layer.input is None


def test_feedforward_rejects_wrong_width_and_uninitialised():
    with pytest.raises(ShapeError):
        _layer().feedforward([1.0, 2.0, 3.0])
    with pytest.raises(NotInitializedError):
        Dense(rows=2, columns=2).feedforward([1.0, 1.0])


def test_backprop_updates_weights_and_propagates_error():
    layer, _ = _layer().feedforward([1.0, 1.0])
    updated, next_error, props = layer.backprop(-3.0, [1.0, 0.5], Backprop(learning_rate=0.1))

    assert np.allclose(updated.weights, [[1.2, 2.2], [3.1, 4.1]])
    assert np.allclose(updated.biases, [[0.2], [0.1]])
    assert np.allclose(next_error.values, [[2.5], [4.0]])
    assert props.is_empty
    assert np.allclose(layer.weights, [[1.0, 2.0], [3.0, 4.0]])


def test_backprop_drains_pending_derivative():
    layer, _ = _layer().feedforward([1.0, 1.0])
    props = Backprop(learning_rate=0.1).put_derivative(lambda z: 0.0)
    updated, next_error, props = layer.backprop(-3.0, [1.0, 0.5], props)
    assert props.is_empty
    assert np.allclose(updated.weights, layer.weights)
    assert np.allclose(next_error.values, 0.0)


def test_backprop_needs_a_forward_pass():
    with pytest.raises(LayerError):
        _layer().backprop(0.0, [1.0, 1.0], Backprop())


def test_backprop_update_ignores_total_loss_pd():
    layer, _ = _layer().feedforward([1.0, 1.0])
    results = [layer.backprop(total, [1.0, 0.5], Backprop(learning_rate=0.1)) for total in (-3.0, 0.0, 42.0)]
    for updated, next_error, _ in results[1:]:
        assert np.array_equal(updated.weights, results[0][0].weights)
        assert np.array_equal(next_error.values, results[0][1].values)
